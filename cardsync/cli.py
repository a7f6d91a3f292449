#!/usr/bin/env python3
"""
cardsync - keep a Trello card in step with a planner's task list

Usage:
    cardsync create "Implement user authentication"   # card from plan text
    cardsync pickup 68c5ade263559cdf6d7cfbe1          # work on an existing card
    cardsync status                                   # show the active card
    cardsync update "All endpoints done"              # re-sync tracked tasks
    cardsync complete "All tests passing"             # move to Done, clear session
    cardsync sync < tasks.json                        # sync a JSON task list
    cardsync hook < payload.json                      # planner hook payload

Credentials come from cardsync.yaml or TRELLO_API_KEY / TRELLO_TOKEN /
TRELLO_BOARD_ID.
"""

import argparse
import json
import logging
import sys
from typing import List

from .config import Config
from .errors import CardSyncError
from .schema import Task
from .workflow import CardWorkflow

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [cardsync] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def parse_tasks(data) -> List[Task]:
    """Tasks from a JSON list, or from a hook payload's todos."""
    if isinstance(data, dict):
        params = data.get("tool_input") or data.get("toolParameters") or data
        if not isinstance(params, dict):
            raise ValueError("hook payload has no tool input")
        data = params.get("todos") or []
    if not isinstance(data, list):
        raise ValueError("expected a list of tasks")
    return [Task.from_dict(item) for item in data]


def read_tasks(stream) -> List[Task]:
    raw = stream.read()
    if not raw.strip():
        return []
    return parse_tasks(json.loads(raw))


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="cardsync",
        description="Sync a planner's task list to a Trello card",
    )
    ap.add_argument("--config", default=None, help="Path to cardsync.yaml")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("create", help="Create a card from plan text")
    p.add_argument("plan", nargs="*", help="Plan text (read from stdin if omitted)")

    p = sub.add_parser("pickup", help="Pick up an existing card by id or name")
    p.add_argument("card", nargs="+", help="Card id or name")

    sub.add_parser("status", help="Show the active card")

    p = sub.add_parser("update", help="Re-sync tracked tasks to the active card")
    p.add_argument("note", nargs="*")

    p = sub.add_parser("complete", help="Move the active card to Done")
    p.add_argument("note", nargs="*")

    sub.add_parser("sync", help="Sync a JSON task list from stdin")
    sub.add_parser("hook", help="Sync from a planner hook payload on stdin")
    sub.add_parser("link", help="Link a JSON task list on stdin to existing cards")
    return ap


def run(args, workflow: CardWorkflow, stdin=None) -> int:
    """Dispatch one command. Returns the process exit code."""
    stdin = stdin or sys.stdin

    if args.command == "create":
        plan = " ".join(args.plan) if args.plan else stdin.read()
        result = workflow.create_from_plan(plan)
    elif args.command == "pickup":
        result = workflow.pickup(" ".join(args.card))
    elif args.command == "status":
        result = workflow.status()
    elif args.command == "update":
        result = workflow.update(" ".join(args.note) or None)
    elif args.command == "complete":
        result = workflow.complete(" ".join(args.note) or None)
    else:
        try:
            tasks = read_tasks(stdin)
        except (ValueError, CardSyncError) as e:
            print(f"❌ Invalid task payload: {e}")
            return 1

        if args.command == "link":
            result = workflow.link(tasks)
        elif args.command == "hook" and not tasks:
            logger.info("No tasks in hook payload - skipping sync")
            return 0
        else:
            outcome = workflow.sync(tasks)
            print(outcome.message if outcome.success else f"❌ {outcome.message}")
            return 0 if outcome.success else 1

    print(result.message)
    return 0 if result.ok else 1


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = Config.load(args.config)
        setup_logging(cfg.log_level)
        cfg.validate()
    except CardSyncError as e:
        setup_logging()
        logger.error(str(e))
        print(f"❌ {e}")
        return 1

    return run(args, CardWorkflow.from_config(cfg))


if __name__ == "__main__":
    sys.exit(main())
