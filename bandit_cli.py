#!/usr/bin/env python3
"""Command-line front end for the bandit client.

Usage:
    python bandit_cli.py assign homepage-cta blue green red
    python bandit_cli.py win homepage-cta
    python bandit_cli.py --redis-url redis://localhost:6379/0 show

Defaults come from ``BANDIT_*`` environment variables (see
``bandit_client.settings``).  Without a Redis URL assignments only live for
the duration of one command.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence

from bandit_client.client import BanditClient
from bandit_client.errors import BanditClientError
from bandit_client.settings import ClientSettings
from bandit_client.transport import Transport

logger = logging.getLogger("bandit_cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Bayesian bandit participant client")
    parser.add_argument("--server", help="Base URL of the bandit service")
    parser.add_argument("--redis-url", help="Persist assignments in this Redis database")
    parser.add_argument("--storage-key", help="Key the assignment blob is stored under")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed for fallback picks")

    commands = parser.add_subparsers(dest="command", required=True)

    assign = commands.add_parser("assign", help="Print the variant to show")
    assign.add_argument("experiment")
    assign.add_argument("variants", nargs="+")

    win = commands.add_parser("win", help="Report a conversion")
    win.add_argument("experiment")

    commands.add_parser("show", help="Dump cached assignments as JSON")
    commands.add_parser("reset", help="Forget every cached assignment")
    return parser


def load_settings(args: argparse.Namespace) -> ClientSettings:
    settings = ClientSettings()
    overrides = {
        "server_url": args.server,
        "redis_url": args.redis_url,
        "storage_key": args.storage_key,
    }
    return settings.model_copy(
        update={key: value for key, value in overrides.items() if value is not None}
    )


async def run(
    args: argparse.Namespace,
    settings: ClientSettings,
    transport: Optional[Transport] = None,
) -> str:
    client = BanditClient.from_settings(settings, transport=transport, seed=args.seed)

    async with client:
        if args.command == "assign":
            return await client.assign(args.experiment, args.variants)

        if args.command == "win":
            await client.report_win(args.experiment)
            assignment = client.assignments.get(args.experiment)
            return "reported" if assignment is not None and assignment.reported else "not reported"

        if args.command == "show":
            snapshot = {
                experiment_id: assignment.model_dump(by_alias=True)
                for experiment_id, assignment in client.assignments.items()
            }
            return json.dumps(snapshot, indent=2, sort_keys=True)

        if args.command == "reset":
            client.reset()
            return "cleared"

    raise ValueError(f"Unknown command '{args.command}'")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = load_settings(args)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        output = asyncio.run(run(args, settings))
    except (BanditClientError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
