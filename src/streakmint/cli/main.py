#!/usr/bin/env python3
"""
StreakMint command line entry point.
"""

from __future__ import annotations

import os

import click

from streakmint.cli.reward_commands import REWARD_COMMANDS

DEFAULT_NODE_URL = os.getenv("STREAKMINT_NODE_URL", "http://127.0.0.1:8090")


@click.group()
@click.option("--node-url", default=DEFAULT_NODE_URL, show_default=True, help="Reward node API URL")
@click.option("--json", "json_output", is_flag=True, help="Print raw JSON responses")
@click.pass_context
def cli(ctx: click.Context, node_url: str, json_output: bool):
    """StreakMint daily reward client."""
    ctx.ensure_object(dict)
    ctx.obj["node_url"] = node_url
    ctx.obj["json_output"] = json_output


for command in REWARD_COMMANDS:
    cli.add_command(command)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
