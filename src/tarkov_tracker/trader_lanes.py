from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from .config import TRADER_ORDER
from .models import CrossTraderDep, IntraTraderDep, Quest, TraderQuestGroup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TraderColor:
    primary: str
    bg: str


# EFT palette
EFT_COLORS = {
    "gold_one": "#d9d7c5",
    "gold_two": "#b39d70",
    "gunmetal": "#383945",
    "gunmetal_dark": "#2d2d2f",
    "black_light": "#1b1919",
}

# Traders share one theme and are told apart by icon.
DEFAULT_TRADER_COLOR = TraderColor(primary=EFT_COLORS["gold_two"], bg=EFT_COLORS["gunmetal"])
TRADER_COLORS: Dict[str, TraderColor] = {trader: DEFAULT_TRADER_COLOR for trader in TRADER_ORDER + ["ref"]}

STATUS_COLORS = {
    "locked": {"primary": "#888888", "bg": "#1a1a1a", "border": "#444444"},
    "available": {"primary": "#00c8ff", "bg": "#0a1a22", "border": "#00c8ff"},
    "in_progress": {"primary": "#ffaa00", "bg": "#1a1408", "border": "#ffaa00"},
    "completed": {"primary": "#00cc00", "bg": "#0a1a0a", "border": "#00cc00"},
}


def get_trader_color(trader_id: str) -> TraderColor:
    return TRADER_COLORS.get(trader_id.lower(), DEFAULT_TRADER_COLOR)


def split_quests_by_trader(quests: Sequence[Quest]) -> Dict[str, TraderQuestGroup]:
    """
    Group quests into per-trader lanes and classify every loaded prerequisite
    edge as intra-trader or cross-trader.

    Cross-trader edges are recorded on the dependent quest's group and on the
    prerequisite's group. A quest without intra-trader prerequisites is a root
    of its lane even if it depends on other traders.
    """
    groups: Dict[str, TraderQuestGroup] = {}
    for quest in quests:
        trader_id = quest.trader_id.lower()
        if trader_id not in groups:
            groups[trader_id] = TraderQuestGroup(trader_id=trader_id, trader=quest.trader)
        groups[trader_id].quests.append(quest)

    loaded = {quest.id for quest in quests}
    for quest in quests:
        trader_id = quest.trader_id.lower()
        group = groups[trader_id]
        has_intra_dep = False

        for dep in quest.depends_on:
            if dep.required_quest_id not in loaded:
                continue
            source_trader_id = dep.required_trader_id.lower()
            if source_trader_id == trader_id:
                group.intra_trader_deps.append(IntraTraderDep(source_id=dep.required_quest_id, target_id=quest.id))
                has_intra_dep = True
                continue

            cross = CrossTraderDep(
                source_quest_id=dep.required_quest_id,
                source_trader_id=source_trader_id,
                target_quest_id=quest.id,
                target_trader_id=trader_id,
            )
            group.cross_trader_deps.append(cross)
            source_group = groups.get(source_trader_id)
            if source_group is not None:
                source_group.cross_trader_deps.append(cross)

        if not has_intra_dep:
            group.root_quests.append(quest)

    return groups


def trader_cross_weights(groups: Dict[str, TraderQuestGroup]) -> Dict[str, Dict[str, int]]:
    """Count cross-trader links per (trader, source trader) pair."""
    weights: Dict[str, Dict[str, int]] = {}
    for group in groups.values():
        row = weights.setdefault(group.trader_id, {})
        for dep in group.cross_trader_deps:
            row[dep.source_trader_id] = row.get(dep.source_trader_id, 0) + 1
    return weights


def compute_trader_order(groups: Dict[str, TraderQuestGroup]) -> List[str]:
    # Weights are informational only; the fixed order always wins.
    logger.debug("Cross-trader weights: %s", trader_cross_weights(groups))

    def priority(trader_id: str) -> int:
        return TRADER_ORDER.index(trader_id) if trader_id in TRADER_ORDER else len(TRADER_ORDER)

    # sorted() is stable, so unknown traders keep their encounter order.
    return sorted(groups, key=priority)
