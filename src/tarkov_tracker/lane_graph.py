from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Union

from .config import GLOBAL_LAYOUT, LANE_CONFIG, LANE_LAYOUT, QUEST_NODE, LaneConfig, LayoutConfig, NodeSize
from .dependency_graph import get_quest_chain
from .layered_layout import layered_layout
from .models import (
    EdgeStyle,
    IntraTraderDep,
    LaneOffset,
    Position,
    Quest,
    QuestEdge,
    QuestNode,
    QuestStatus,
    Trader,
    TraderNode,
    TraderQuestGroup,
)
from .trader_lanes import STATUS_COLORS, compute_trader_order, get_trader_color, split_quests_by_trader

logger = logging.getLogger(__name__)

EDGE_COLORS = {
    QuestStatus.COMPLETED: "#10B981",
    QuestStatus.AVAILABLE: "#3B82F6",
    QuestStatus.LOCKED: "#6B7280",
}
EDGE_COLOR_DEFAULT = "#9CA3AF"
EDGE_COLOR_DIMMED = "#D1D5DB"


@dataclass
class GraphOptions:
    selected_quest_id: Optional[str] = None
    focused_quest_id: Optional[str] = None
    focus_chain: FrozenSet[str] = frozenset()

    @property
    def has_focus_mode(self) -> bool:
        return self.focused_quest_id is not None

    @classmethod
    def for_focus(cls, quest_id: Optional[str], quests: Sequence[Quest], selected_quest_id: Optional[str] = None):
        if quest_id is None:
            return cls(selected_quest_id=selected_quest_id)
        return cls(
            selected_quest_id=selected_quest_id,
            focused_quest_id=quest_id,
            focus_chain=frozenset(get_quest_chain(quest_id, quests)),
        )


@dataclass
class TraderLaneLayout:
    trader_id: str
    nodes: List[QuestNode]
    edges: List[QuestEdge]
    lane_height: float
    lane_width: float
    content_height: float


GraphNode = Union[QuestNode, TraderNode]


@dataclass
class StackedLayout:
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[QuestEdge] = field(default_factory=list)
    lane_offsets: Dict[str, LaneOffset] = field(default_factory=dict)


@dataclass
class QuestGraph:
    nodes: List[QuestNode] = field(default_factory=list)
    edges: List[QuestEdge] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }


@dataclass
class TraderLaneGraph:
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[QuestEdge] = field(default_factory=list)
    lane_offsets: Dict[str, LaneOffset] = field(default_factory=dict)
    trader_order: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "lane_offsets": {trader_id: asdict(offset) for trader_id, offset in self.lane_offsets.items()},
            "trader_order": list(self.trader_order),
        }


def edge_style(target_status: QuestStatus, kappa_required: bool, in_focus_chain: bool, has_focus_mode: bool) -> EdgeStyle:
    """Edge look for a dependency, driven by the dependent quest and the focus state."""
    dimmed = has_focus_mode and not in_focus_chain
    if dimmed:
        stroke = EDGE_COLOR_DIMMED
        opacity = 0.2
    else:
        stroke = EDGE_COLORS.get(target_status, EDGE_COLOR_DEFAULT)
        opacity = 0.4 if target_status is QuestStatus.LOCKED else 1.0
    width = 3 if in_focus_chain or kappa_required else 2
    return EdgeStyle(stroke=stroke, stroke_width=width, opacity=opacity)


def build_quest_edge(source: Quest, target: Quest, options: GraphOptions) -> QuestEdge:
    in_chain = source.id in options.focus_chain and target.id in options.focus_chain
    dimmed = options.has_focus_mode and not in_chain
    return QuestEdge(
        id=f"{source.id}-{target.id}",
        source=source.id,
        target=target.id,
        style=edge_style(target.computed_status, target.kappa_required, in_chain, options.has_focus_mode),
        animated=target.computed_status is QuestStatus.AVAILABLE and not dimmed,
        data={"source_status": source.computed_status.value, "target_status": target.computed_status.value},
    )


def _quest_node(quest: Quest, position: Position, options: GraphOptions, is_root: bool, is_leaf: bool) -> QuestNode:
    return QuestNode(
        id=quest.id,
        position=position,
        quest=quest,
        is_root=is_root,
        is_leaf=is_leaf,
        is_selected=quest.id == options.selected_quest_id,
        is_focused=quest.id == options.focused_quest_id,
        is_in_focus_chain=quest.id in options.focus_chain,
        has_focus_mode=options.has_focus_mode,
        colors=STATUS_COLORS[quest.computed_status.value],
    )


def _unique_deps(deps: Iterable[IntraTraderDep], loaded) -> List[IntraTraderDep]:
    seen = set()
    unique = []
    for dep in deps:
        key = (dep.source_id, dep.target_id)
        if key in seen or dep.source_id not in loaded or dep.target_id not in loaded:
            continue
        seen.add(key)
        unique.append(dep)
    return unique


def layout_trader_lane(
    group: TraderQuestGroup,
    options: Optional[GraphOptions] = None,
    lane_config: LaneConfig = LANE_CONFIG,
    node_size: NodeSize = QUEST_NODE,
    config: LayoutConfig = LANE_LAYOUT,
) -> TraderLaneLayout:
    """
    Lay out one trader's quests using only intra-trader edges.
    Node positions are top-left corners relative to the lane origin.
    """
    options = options or GraphOptions()
    quest_map = {quest.id: quest for quest in group.quests}
    deps = _unique_deps(group.intra_trader_deps, quest_map)

    layout = layered_layout(list(quest_map), [(d.source_id, d.target_id) for d in deps], node_size, config)
    edges = [build_quest_edge(quest_map[d.source_id], quest_map[d.target_id], options) for d in deps]

    if quest_map:
        min_top = min(y - node_size.height / 2 for _, y in layout.positions.values())
        max_bottom = max(y + node_size.height / 2 for _, y in layout.positions.values())
        lane_width = max(x + node_size.width / 2 for x, _ in layout.positions.values())
        content_height = max_bottom - min_top
    else:
        min_top, lane_width, content_height = 0.0, 0.0, node_size.height
    lane_height = max(lane_config.base_lane_height, content_height + lane_config.lane_padding)
    top_offset = (lane_height - content_height) / 2

    has_incoming = {d.target_id for d in deps}
    has_outgoing = {d.source_id for d in deps}
    nodes = []
    for quest in group.quests:
        x, y = layout.positions[quest.id]
        position = Position(x=x - node_size.width / 2, y=y - node_size.height / 2 - min_top + top_offset)
        nodes.append(_quest_node(quest, position, options, quest.id not in has_incoming, quest.id not in has_outgoing))

    return TraderLaneLayout(
        trader_id=group.trader_id,
        nodes=nodes,
        edges=edges,
        lane_height=lane_height,
        lane_width=lane_width,
        content_height=content_height,
    )


def stack_trader_lanes(
    lane_layouts: Sequence[TraderLaneLayout],
    trader_order: Sequence[str],
    groups: Dict[str, TraderQuestGroup],
    trader_names: Optional[Dict[str, str]] = None,
    lane_config: LaneConfig = LANE_CONFIG,
    config: LayoutConfig = GLOBAL_LAYOUT,
) -> StackedLayout:
    """Stack lanes top to bottom in trader order, one header node per lane."""
    trader_names = trader_names or {}
    lanes = {lane.trader_id: lane for lane in lane_layouts}
    stacked = StackedLayout()
    current_y = config.marginy
    x_offset = config.marginx + lane_config.trader_node_width + lane_config.trader_to_quest_gap

    for trader_id in trader_order:
        lane = lanes.get(trader_id)
        group = groups.get(trader_id)
        if lane is None or group is None:
            continue

        stacked.lane_offsets[trader_id] = LaneOffset(y=current_y, height=lane.lane_height)
        stacked.nodes.append(
            TraderNode(
                id=f"trader-{trader_id}",
                position=Position(
                    x=config.marginx,
                    y=current_y + lane.lane_height / 2 - lane_config.trader_node_height / 2,
                ),
                trader_id=trader_id,
                trader_name=trader_names.get(trader_id) or group.trader.name,
                color=get_trader_color(trader_id).primary,
                quest_count=len(group.quests),
                completed_count=sum(1 for q in group.quests if q.computed_status is QuestStatus.COMPLETED),
            )
        )
        for node in lane.nodes:
            moved = Position(x=node.position.x + x_offset, y=node.position.y + current_y)
            stacked.nodes.append(replace(node, position=moved))
        stacked.edges.extend(lane.edges)

        current_y += lane.lane_height + lane_config.lane_spacing

    return stacked


def build_cross_trader_edges(
    groups: Dict[str, TraderQuestGroup],
    focus_chain: Iterable[str] = (),
    has_focus_mode: bool = False,
) -> List[QuestEdge]:
    """
    Dashed edges between lanes. Not part of the default lane graph, which
    shows cross-trader prerequisites as badges on the quest nodes instead.
    """
    focus_chain = frozenset(focus_chain)
    edges: List[QuestEdge] = []
    seen = set()
    for group in groups.values():
        for dep in group.cross_trader_deps:
            # Emit once, from the source lane.
            if dep.source_trader_id != group.trader_id:
                continue
            edge_id = f"cross-{dep.source_quest_id}-{dep.target_quest_id}"
            if edge_id in seen:
                continue
            seen.add(edge_id)

            in_chain = dep.source_quest_id in focus_chain and dep.target_quest_id in focus_chain
            dimmed = has_focus_mode and not in_chain
            edges.append(
                QuestEdge(
                    id=edge_id,
                    source=dep.source_quest_id,
                    target=dep.target_quest_id,
                    type="smoothstep",
                    style=EdgeStyle(
                        stroke="#E5E7EB" if dimmed else EDGE_COLOR_DEFAULT,
                        stroke_width=1.5,
                        opacity=0.2 if dimmed else 0.6,
                        dash_array="6,4",
                    ),
                    data={
                        "is_cross_trader": True,
                        "source_trader_id": dep.source_trader_id,
                        "target_trader_id": dep.target_trader_id,
                    },
                )
            )
    return edges


def build_trader_lane_graph(
    quests: Sequence[Quest],
    traders: Sequence[Trader] = (),
    options: Optional[GraphOptions] = None,
) -> TraderLaneGraph:
    options = options or GraphOptions()
    groups = split_quests_by_trader(quests)
    trader_order = compute_trader_order(groups)

    lane_layouts = [
        layout_trader_lane(groups[trader_id], options) for trader_id in trader_order if groups[trader_id].quests
    ]
    trader_names = {trader.id.lower(): trader.name for trader in traders}
    stacked = stack_trader_lanes(lane_layouts, trader_order, groups, trader_names)
    logger.debug("Laid out %d quests in %d trader lanes", len(quests), len(lane_layouts))

    return TraderLaneGraph(
        nodes=stacked.nodes,
        edges=stacked.edges,
        lane_offsets=stacked.lane_offsets,
        trader_order=trader_order,
    )


def build_quest_graph(
    quests: Sequence[Quest],
    options: Optional[GraphOptions] = None,
    node_size: NodeSize = QUEST_NODE,
    config: LayoutConfig = GLOBAL_LAYOUT,
) -> QuestGraph:
    """Single layout over every quest and every loaded dependency, roots aligned left."""
    options = options or GraphOptions()
    quest_map = {quest.id: quest for quest in quests}

    pairs = []
    seen = set()
    edges = []
    for quest in quests:
        for dep in quest.depends_on:
            required = quest_map.get(dep.required_quest_id)
            if required is None or (required.id, quest.id) in seen:
                continue
            seen.add((required.id, quest.id))
            pairs.append((required.id, quest.id))
            edges.append(build_quest_edge(required, quest, options))

    layout = layered_layout(list(quest_map), pairs, node_size, config)
    if not quest_map:
        return QuestGraph()

    root_ids = {quest.id for quest in quests if not quest.depends_on}
    leaf_ids = {quest.id for quest in quests if not quest.depended_on_by}
    root_xs = [layout.positions[quest_id][0] for quest_id in root_ids]
    shift_x = (min(root_xs) - node_size.width / 2 - config.marginx) if root_xs else 0.0

    nodes = []
    for quest in quests:
        x, y = layout.positions[quest.id]
        position = Position(x=x - node_size.width / 2 - shift_x, y=y - node_size.height / 2)
        nodes.append(_quest_node(quest, position, options, quest.id in root_ids, quest.id in leaf_ids))
    return QuestGraph(nodes=nodes, edges=edges)
