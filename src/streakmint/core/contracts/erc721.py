"""
ERC721-style reward token collection.

This module provides the ownership layer the daily reward ledger delegates to:
- Minting to an explicit token ID (minter-only)
- Burning by owner or approved operator
- Transfers and approvals (transferFrom, approve, setApprovalForAll)
- Enumeration (totalSupply, tokenByIndex, tokenOfOwnerByIndex)

The collection is the single source of truth for current ownership. It has no
knowledge of reward categories or claim cooldowns.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass, field

from ..reward_exceptions import CollectionError, DuplicateTokenError, TokenNotFoundError
from ..structured_logger import truncate_address

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40


@dataclass
class TransferEvent:
    """Represents a collection-level event."""

    event_type: str  # "Transfer", "Approval", "ApprovalForAll"
    from_address: str
    to_address: str
    token_id: int
    approved: bool = False  # For ApprovalForAll
    timestamp: float = field(default_factory=time.time)


@dataclass
class RewardCollection:
    """
    Enumerable ERC721 collection used as the reward ownership backend.

    Only the configured ``minter`` may mint. Token IDs are supplied by the
    caller and must be unused; burned IDs stay reserved so they are never
    reissued.
    """

    name: str
    symbol: str

    # Contract address
    address: str = ""

    # Only this address may mint
    minter: str = ""

    # Token state
    owners: dict[int, str] = field(default_factory=dict)  # tokenId -> owner
    balances: dict[str, int] = field(default_factory=dict)  # owner -> count
    token_approvals: dict[int, str] = field(default_factory=dict)  # tokenId -> approved
    operator_approvals: dict[str, dict[str, bool]] = field(
        default_factory=dict
    )  # owner -> operator -> approved

    # Enumerable data
    all_tokens: list[int] = field(default_factory=list)
    owner_tokens: dict[str, list[int]] = field(default_factory=dict)  # owner -> tokenIds

    # Burned IDs stay reserved
    burned_tokens: set[int] = field(default_factory=set)

    events: list[TransferEvent] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.address:
            addr_input = f"{self.name}{self.symbol}{time.time()}".encode()
            addr_hash = hashlib.sha3_256(addr_input).digest()
            self.address = f"0x{addr_hash[-20:].hex()}"
        self.minter = self._normalize(self.minter)

    # ==================== View Functions ====================

    def balance_of(self, owner: str) -> int:
        """Get number of tokens owned by an address."""
        return self.balances.get(self._normalize(owner), 0)

    def owner_of(self, token_id: int) -> str:
        """
        Get the owner of a token.

        Args:
            token_id: Token ID

        Returns:
            Owner address

        Raises:
            TokenNotFoundError: If token doesn't exist
        """
        owner = self.owners.get(token_id)
        if not owner:
            raise TokenNotFoundError(
                f"ERC721: token {token_id} does not exist",
                details={"token_id": token_id},
            )
        return owner

    def exists(self, token_id: int) -> bool:
        """Whether the token is currently live (minted and not burned)."""
        return token_id in self.owners

    def get_approved(self, token_id: int) -> str:
        """Get approved address for a token (zero address if none)."""
        self._require_minted(token_id)
        return self.token_approvals.get(token_id, ZERO_ADDRESS)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        owner_norm = self._normalize(owner)
        operator_norm = self._normalize(operator)
        return self.operator_approvals.get(owner_norm, {}).get(operator_norm, False)

    def total_supply(self) -> int:
        """Get number of live tokens."""
        return len(self.all_tokens)

    def token_by_index(self, index: int) -> int:
        if index < 0 or index >= len(self.all_tokens):
            raise CollectionError(f"ERC721: index {index} out of bounds")
        return self.all_tokens[index]

    def token_of_owner_by_index(self, owner: str, index: int) -> int:
        owner_norm = self._normalize(owner)
        tokens = self.owner_tokens.get(owner_norm, [])
        if index < 0 or index >= len(tokens):
            raise CollectionError(f"ERC721: owner index {index} out of bounds")
        return tokens[index]

    def tokens_of_owner(self, owner: str) -> list[int]:
        """All live token IDs held by an address, in acquisition order."""
        return list(self.owner_tokens.get(self._normalize(owner), []))

    # ==================== State-Changing Functions ====================

    def approve(self, caller: str, to: str, token_id: int) -> bool:
        """
        Approve an address to transfer a specific token.

        Args:
            caller: Message sender
            to: Address to approve
            token_id: Token ID

        Returns:
            True if successful
        """
        owner = self.owner_of(token_id)
        caller_norm = self._normalize(caller)
        to_norm = self._normalize(to)

        if to_norm == owner:
            raise CollectionError("ERC721: approval to current owner")

        if caller_norm != owner and not self.is_approved_for_all(owner, caller_norm):
            raise CollectionError("ERC721: approve caller is not owner nor approved")

        self.token_approvals[token_id] = to_norm
        self._emit("Approval", owner, to_norm, token_id)

        return True

    def set_approval_for_all(
        self, caller: str, operator: str, approved: bool
    ) -> bool:
        caller_norm = self._normalize(caller)
        operator_norm = self._normalize(operator)

        if operator_norm == caller_norm:
            raise CollectionError("ERC721: approve to caller")

        self.operator_approvals.setdefault(caller_norm, {})[operator_norm] = approved
        self._emit("ApprovalForAll", caller_norm, operator_norm, 0, approved=approved)

        return True

    def transfer_from(
        self, caller: str, from_addr: str, to_addr: str, token_id: int
    ) -> bool:
        """
        Transfer a token.

        Args:
            caller: Message sender
            from_addr: Current owner
            to_addr: New owner
            token_id: Token ID

        Returns:
            True if successful
        """
        from_norm = self._normalize(from_addr)
        to_norm = self._normalize(to_addr)
        caller_norm = self._normalize(caller)

        owner = self.owner_of(token_id)
        if owner != from_norm:
            raise CollectionError("ERC721: transfer from incorrect owner")

        if not self._is_approved_or_owner(caller_norm, token_id):
            raise CollectionError("ERC721: caller is not owner nor approved")

        if to_norm == ZERO_ADDRESS:
            raise CollectionError("ERC721: transfer to zero address")

        self.token_approvals.pop(token_id, None)

        self.balances[from_norm] = self.balances.get(from_norm, 1) - 1
        self.balances[to_norm] = self.balances.get(to_norm, 0) + 1

        self.owners[token_id] = to_norm

        if from_norm in self.owner_tokens:
            self.owner_tokens[from_norm].remove(token_id)
        self.owner_tokens.setdefault(to_norm, []).append(token_id)

        self._emit("Transfer", from_norm, to_norm, token_id)

        logger.debug(
            "ERC721 transfer",
            extra={
                "event": "erc721.transfer",
                "collection": self.symbol,
                "token_id": token_id,
                "from": truncate_address(from_norm),
                "to": truncate_address(to_norm),
            }
        )
        return True

    # ==================== Minting & Burning ====================

    def mint(self, minter: str, to: str, token_id: int) -> int:
        """
        Mint a token with an explicit ID.

        Args:
            minter: Address calling mint (must be the collection minter)
            to: Recipient address
            token_id: ID to create

        Returns:
            Minted token ID

        Raises:
            CollectionError: If caller is not the minter or recipient is zero
            DuplicateTokenError: If the ID was already minted
        """
        if self._normalize(minter) != self.minter:
            raise CollectionError("ERC721: caller is not minter")

        to_norm = self._normalize(to)
        if to_norm == ZERO_ADDRESS:
            raise CollectionError("ERC721: mint to zero address")

        if token_id in self.owners or token_id in self.burned_tokens:
            raise DuplicateTokenError(
                f"ERC721: token {token_id} already minted",
                details={"token_id": token_id},
            )

        self.owners[token_id] = to_norm
        self.balances[to_norm] = self.balances.get(to_norm, 0) + 1

        self.all_tokens.append(token_id)
        self.owner_tokens.setdefault(to_norm, []).append(token_id)

        self._emit("Transfer", ZERO_ADDRESS, to_norm, token_id)

        logger.info(
            "ERC721 mint",
            extra={
                "event": "erc721.mint",
                "collection": self.symbol,
                "token_id": token_id,
                "to": truncate_address(to_norm),
            }
        )

        return token_id

    def burn(self, caller: str, token_id: int) -> bool:
        """
        Burn a token.

        Args:
            caller: Message sender (must be owner or approved)
            token_id: Token ID to burn

        Returns:
            True if successful
        """
        owner = self.owner_of(token_id)
        caller_norm = self._normalize(caller)

        if not self._is_approved_or_owner(caller_norm, token_id):
            raise CollectionError("ERC721: caller is not owner nor approved")

        self.token_approvals.pop(token_id, None)
        self.balances[owner] = self.balances.get(owner, 1) - 1
        del self.owners[token_id]
        self.burned_tokens.add(token_id)

        self.all_tokens.remove(token_id)
        if owner in self.owner_tokens:
            self.owner_tokens[owner].remove(token_id)

        self._emit("Transfer", owner, ZERO_ADDRESS, token_id)

        logger.info(
            "ERC721 burn",
            extra={
                "event": "erc721.burn",
                "collection": self.symbol,
                "token_id": token_id,
            }
        )

        return True

    # ==================== Helpers ====================

    def _normalize(self, address: str) -> str:
        """Normalize address to lowercase."""
        return address.lower()

    def _require_minted(self, token_id: int) -> None:
        if token_id not in self.owners:
            raise TokenNotFoundError(
                f"ERC721: token {token_id} does not exist",
                details={"token_id": token_id},
            )

    def _is_approved_or_owner(self, caller: str, token_id: int) -> bool:
        owner = self.owner_of(token_id)
        return (
            caller == owner
            or self.get_approved(token_id) == caller
            or self.is_approved_for_all(owner, caller)
        )

    def _emit(
        self,
        event_type: str,
        from_addr: str,
        to_addr: str,
        token_id: int,
        approved: bool = False,
    ) -> None:
        self.events.append(
            TransferEvent(
                event_type=event_type,
                from_address=from_addr,
                to_address=to_addr,
                token_id=token_id,
                approved=approved,
            )
        )

    # ==================== Serialization ====================

    def to_dict(self) -> dict:
        """Serialize collection state to dictionary."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "address": self.address,
            "minter": self.minter,
            "owners": {str(k): v for k, v in self.owners.items()},
            "balances": dict(self.balances),
            "token_approvals": {str(k): v for k, v in self.token_approvals.items()},
            "operator_approvals": {
                k: dict(v) for k, v in self.operator_approvals.items()
            },
            "all_tokens": list(self.all_tokens),
            "owner_tokens": {k: list(v) for k, v in self.owner_tokens.items()},
            "burned_tokens": sorted(self.burned_tokens),
        }

    def restore(self, data: dict) -> None:
        """Replace token state in place with a ``to_dict`` snapshot (events are kept)."""
        self.owners = {int(k): v for k, v in data.get("owners", {}).items()}
        self.balances = dict(data.get("balances", {}))
        self.token_approvals = {
            int(k): v for k, v in data.get("token_approvals", {}).items()
        }
        self.operator_approvals = {
            k: dict(v) for k, v in data.get("operator_approvals", {}).items()
        }
        self.all_tokens = list(data.get("all_tokens", []))
        self.owner_tokens = {
            k: list(v) for k, v in data.get("owner_tokens", {}).items()
        }
        self.burned_tokens = set(data.get("burned_tokens", []))

    @classmethod
    def from_dict(cls, data: dict) -> "RewardCollection":
        """Deserialize collection state from dictionary."""
        collection = cls(
            name=data["name"],
            symbol=data["symbol"],
            address=data.get("address", ""),
            minter=data.get("minter", ""),
        )
        collection.restore(data)
        return collection
