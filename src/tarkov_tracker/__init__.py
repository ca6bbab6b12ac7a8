"""Quest progress tracking and trader lane layout for the Tarkov quest tree."""
from __future__ import annotations

from .dependency_graph import get_quest_chain, resolve_quest_statuses
from .lane_graph import GraphOptions, build_cross_trader_edges, build_quest_graph, build_trader_lane_graph
from .models import (
    BinaryProgress,
    NumericProgress,
    Objective,
    ObjectiveState,
    Quest,
    QuestDependency,
    QuestStatus,
    Trader,
)
from .objectives import is_objective_complete
from .quest_status import (
    compute_objective_progress,
    compute_quest_status,
    should_auto_complete_quest,
    would_objective_change_quest_status,
)
from .trader_lanes import compute_trader_order, split_quests_by_trader

__all__ = [
    "BinaryProgress",
    "GraphOptions",
    "NumericProgress",
    "Objective",
    "ObjectiveState",
    "Quest",
    "QuestDependency",
    "QuestStatus",
    "Trader",
    "build_cross_trader_edges",
    "build_quest_graph",
    "build_trader_lane_graph",
    "compute_objective_progress",
    "compute_quest_status",
    "compute_trader_order",
    "get_quest_chain",
    "is_objective_complete",
    "resolve_quest_statuses",
    "should_auto_complete_quest",
    "split_quests_by_trader",
    "would_objective_change_quest_status",
]
