from __future__ import annotations

from pydantic import BaseModel, StrictInt, StrictStr, conint, constr


class RewardClaimInput(BaseModel):
    address: constr(strip_whitespace=True, min_length=1)


class RewardBurnInput(BaseModel):
    address: constr(strip_whitespace=True, min_length=1)
    token_id: conint(strict=True, ge=0)


class BaseUriUpdateInput(BaseModel):
    caller: constr(strip_whitespace=True, min_length=1)
    # Category name in any case, or its integer value
    category: StrictInt | StrictStr
    base_uri: StrictStr
