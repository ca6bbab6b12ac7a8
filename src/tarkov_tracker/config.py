from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class NodeSize:
    width: float
    height: float


@dataclass(frozen=True)
class LayoutConfig:
    rankdir: str = "LR"  # LR (left to right) or TB
    nodesep: float = 35  # gap between nodes on the same rank
    edgesep: float = 10  # gap reserved around dummy nodes of long edges
    ranksep: float = 160  # gap between ranks
    marginx: float = 50
    marginy: float = 30
    sweeps: int = 24  # barycenter ordering passes


@dataclass(frozen=True)
class LaneConfig:
    trader_node_width: float = 100
    trader_node_height: float = 60
    base_lane_height: float = 100  # minimum lane height
    lane_padding: float = 20
    lane_spacing: float = 30  # gap between lanes
    trader_to_quest_gap: float = 60  # gap after the trader header


QUEST_NODE = NodeSize(width=220, height=80)

# Whole-graph view.
GLOBAL_LAYOUT = LayoutConfig()

# Per-trader lanes run tighter.
LANE_LAYOUT = LayoutConfig(nodesep=25, marginx=10, marginy=10)

LANE_CONFIG = LaneConfig()

# Fixed lane order, chosen to keep the common cross-trader links short.
TRADER_ORDER: List[str] = [
    "prapor",
    "therapist",
    "skier",
    "peacekeeper",
    "mechanic",
    "ragman",
    "jaeger",
    "fence",
    "lightkeeper",
]
