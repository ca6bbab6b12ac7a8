from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .dependency_graph import filter_quests_by_trader, resolve_quest_statuses
from .errors import QuestDataError
from .lane_graph import GraphOptions, build_quest_graph, build_trader_lane_graph
from .quest_status import summarize_statuses
from .sources.progress_file import apply_progress, load_progress
from .sources.quest_csv import load_quests

logger = logging.getLogger(__name__)

DEFAULT_QUESTS = "quests.csv"
DEFAULT_OUTPUT = "quest_graph.json"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compute quest statuses and the trader lane layout.")
    parser.add_argument("--quests", default=DEFAULT_QUESTS, type=Path, help="Quest CSV written by the wiki scraper")
    parser.add_argument("--progress", type=Path, help="Optional progress JSON")
    parser.add_argument("--focus", help="Quest id to focus; everything outside its chain is dimmed")
    parser.add_argument("--select", help="Quest id to mark as selected")
    parser.add_argument("--layout", choices=["lanes", "global"], default="lanes", help="Lane view or one global layout")
    parser.add_argument("--out", default=DEFAULT_OUTPUT, type=Path, help="Where to write the graph JSON")
    parser.add_argument("--trader", help="Only lay out this trader's quests")
    parser.add_argument("--log-level", default="WARNING", type=str.upper, choices=LOG_LEVELS, help="Logging level")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        quests = load_quests(args.quests)
        if args.progress:
            apply_progress(quests, load_progress(args.progress))
        else:
            resolve_quest_statuses(quests)
    except QuestDataError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.trader:
        quests = filter_quests_by_trader(quests, args.trader)
        if not quests:
            print(f"error: no quests for trader {args.trader!r}", file=sys.stderr)
            return 1

    if args.focus and args.focus not in {quest.id for quest in quests}:
        logger.warning("Focus quest %s not found, ignoring", args.focus)
        args.focus = None
    options = GraphOptions.for_focus(args.focus, quests, selected_quest_id=args.select)

    if args.layout == "global":
        graph = build_quest_graph(quests, options)
    else:
        graph = build_trader_lane_graph(quests, options=options)

    payload = graph.to_dict()
    payload["stats"] = vars(summarize_statuses(quests))
    args.out.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

    counts = payload["stats"]
    print(
        f"Wrote {len(payload['nodes'])} nodes to {args.out} "
        f"({counts['completed']} completed, {counts['available']} available, {counts['locked']} locked)"
    )
    return 0
