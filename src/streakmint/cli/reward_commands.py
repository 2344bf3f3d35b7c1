#!/usr/bin/env python3
"""
StreakMint reward CLI commands

Talks to a running reward node over HTTP:
- claim, burn, status, token, events, set-base-uri
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

import click
import requests
from rich import box
from rich.console import Console
from rich.table import Table

logger = logging.getLogger(__name__)
console = Console()


def _api_request(node_url: str, method: str, endpoint: str, **kwargs) -> dict[str, Any]:
    """Make an HTTP request to the reward node and return its JSON body.

    Error responses from the node carry a JSON body with ``error``; that
    message is surfaced instead of the bare HTTP status.
    """
    url = f"{node_url.rstrip('/')}/{endpoint.lstrip('/')}"
    try:
        resp = requests.request(method, url, timeout=30.0, **kwargs)
    except requests.exceptions.RequestException as e:
        raise click.ClickException(f"API error: {e}")

    try:
        data = resp.json()
    except ValueError:
        data = {}

    if not resp.ok:
        message = data.get("error") or f"HTTP {resp.status_code}"
        raise click.ClickException(message)
    return data


def _format_time(timestamp: float | None) -> str:
    if timestamp is None:
        return "-"
    return datetime.fromtimestamp(timestamp, timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _emit_json(ctx: click.Context, data: dict[str, Any]) -> bool:
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(data, indent=2))
        return True
    return False


@click.command("claim")
@click.argument("address")
@click.pass_context
def claim(ctx: click.Context, address: str):
    """Claim today's reward token for ADDRESS."""
    data = _api_request(ctx.obj["node_url"], "POST", "/rewards/claim", json={"address": address})
    if _emit_json(ctx, data):
        return
    console.print(
        f"[green]Claimed token #{data['token_id']}[/] ({data['category']})"
    )
    if data.get("token_uri"):
        console.print(f"URI: {data['token_uri']}")


@click.command("burn")
@click.argument("address")
@click.argument("token_id", type=int)
@click.pass_context
def burn(ctx: click.Context, address: str, token_id: int):
    """Burn TOKEN_ID held by ADDRESS."""
    data = _api_request(
        ctx.obj["node_url"],
        "POST",
        "/rewards/burn",
        json={"address": address, "token_id": token_id},
    )
    if _emit_json(ctx, data):
        return
    console.print(f"[yellow]Burned token #{token_id}[/]")


@click.command("status")
@click.argument("address")
@click.pass_context
def status(ctx: click.Context, address: str):
    """Show claim status and history for ADDRESS."""
    data = _api_request(ctx.obj["node_url"], "GET", f"/rewards/users/{address}")
    if _emit_json(ctx, data):
        return

    user = data["user"]
    table = Table(title=f"Rewards for {user['address']}", box=box.ROUNDED)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("First claim", _format_time(user["first_claim_time"]))
    table.add_row("Last claim", _format_time(user["last_claim_time"]))
    table.add_row("Next claim", _format_time(user["next_claim_time"]))
    table.add_row("Can claim now", "yes" if user["can_claim"] else "no")
    table.add_row("Next tier", user["next_category"])
    table.add_row("Claimed", ", ".join(str(t) for t in user["claim_history"]) or "-")
    table.add_row("Burned", ", ".join(str(t) for t in user["burn_history"]) or "-")
    table.add_row("Held", ", ".join(str(t) for t in user["held_tokens"]) or "-")
    console.print(table)


@click.command("token")
@click.argument("token_id", type=int)
@click.pass_context
def token(ctx: click.Context, token_id: int):
    """Show category, owner and URI of TOKEN_ID."""
    data = _api_request(ctx.obj["node_url"], "GET", f"/rewards/tokens/{token_id}")
    if _emit_json(ctx, data):
        return
    owner = data["owner"] or "[red]burned[/]"
    console.print(f"Token #{data['token_id']}: {data['category']}, owner {owner}")
    if data.get("token_uri"):
        console.print(f"URI: {data['token_uri']}")


@click.command("events")
@click.option("--limit", default=20, type=int, help="Number of events to show")
@click.pass_context
def events(ctx: click.Context, limit: int):
    """Show recent Claimed/Burned events."""
    data = _api_request(ctx.obj["node_url"], "GET", f"/rewards/events?limit={limit}")
    if _emit_json(ctx, data):
        return

    rows = data.get("events", [])
    if not rows:
        console.print("[yellow]No events yet[/]")
        return

    table = Table(title="Recent Reward Events", box=box.ROUNDED)
    table.add_column("Event", style="cyan")
    table.add_column("Token", justify="right")
    table.add_column("Category")
    table.add_column("Address", style="dim")
    table.add_column("Time", style="dim")
    for event in rows:
        table.add_row(
            event["event_type"],
            str(event["token_id"]),
            event.get("category", "-"),
            event["user"],
            _format_time(event["timestamp"]),
        )
    console.print(table)


@click.command("set-base-uri")
@click.argument("caller")
@click.argument(
    "category",
    type=click.Choice(["theta", "beta", "alpha", "sigma"], case_sensitive=False),
)
@click.argument("base_uri")
@click.pass_context
def set_base_uri(ctx: click.Context, caller: str, category: str, base_uri: str):
    """Set the metadata BASE_URI for CATEGORY (administrator CALLER only)."""
    data = _api_request(
        ctx.obj["node_url"],
        "PUT",
        "/rewards/admin/base-uri",
        json={"caller": caller, "category": category, "base_uri": base_uri},
    )
    if _emit_json(ctx, data):
        return
    console.print(f"[green]{data['category']} base URI set to {data['base_uri']}[/]")


REWARD_COMMANDS = [claim, burn, status, token, events, set_base_uri]
