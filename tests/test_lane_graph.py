import pytest

from tarkov_tracker.config import GLOBAL_LAYOUT, LANE_CONFIG, QUEST_NODE
from tarkov_tracker.lane_graph import (
    EDGE_COLOR_DEFAULT,
    EDGE_COLOR_DIMMED,
    GraphOptions,
    build_cross_trader_edges,
    build_quest_graph,
    build_trader_lane_graph,
    edge_style,
    layout_trader_lane,
)
from tarkov_tracker.models import QuestNode, QuestStatus, Trader, TraderNode
from tarkov_tracker.trader_lanes import STATUS_COLORS, split_quests_by_trader
from tests.helpers import make_quests


def _quests():
    quests = make_quests(
        [
            ("debut", "prapor"),
            ("checking", "prapor"),
            ("search", "prapor"),
            ("bp", "prapor"),
            ("shortage", "therapist"),
            ("sanitary", "therapist"),
            ("supplier", "skier"),
            ("stash", "btr"),
        ],
        deps=[
            ("debut", "checking"),
            ("debut", "search"),
            ("checking", "bp"),
            ("search", "bp"),
            ("debut", "shortage"),
            ("shortage", "sanitary"),
            ("checking", "supplier"),
        ],
        statuses={"debut": QuestStatus.COMPLETED, "checking": QuestStatus.AVAILABLE, "search": QuestStatus.AVAILABLE},
    )
    quests[-1].kappa_required = True
    return quests


def _quest_nodes(graph):
    return {node.id: node for node in graph.nodes if isinstance(node, QuestNode)}


def test_edge_style_by_status():
    completed = edge_style(QuestStatus.COMPLETED, False, False, False)
    assert (completed.stroke, completed.stroke_width, completed.opacity) == ("#10B981", 2, 1.0)
    assert edge_style(QuestStatus.AVAILABLE, False, False, False).stroke == "#3B82F6"
    locked = edge_style(QuestStatus.LOCKED, False, False, False)
    assert (locked.stroke, locked.opacity) == ("#6B7280", 0.4)
    assert edge_style(QuestStatus.IN_PROGRESS, False, False, False).stroke == EDGE_COLOR_DEFAULT


def test_edge_style_focus_and_kappa():
    dimmed = edge_style(QuestStatus.COMPLETED, False, False, True)
    assert (dimmed.stroke, dimmed.opacity, dimmed.stroke_width) == (EDGE_COLOR_DIMMED, 0.2, 2)
    focused = edge_style(QuestStatus.LOCKED, False, True, True)
    assert (focused.stroke, focused.stroke_width, focused.opacity) == ("#6B7280", 3, 0.4)
    assert edge_style(QuestStatus.AVAILABLE, True, False, False).stroke_width == 3


def test_lane_ranks_follow_prerequisites():
    groups = split_quests_by_trader(_quests())
    lane = layout_trader_lane(groups["prapor"])
    nodes = {node.id: node for node in lane.nodes}
    for dep in groups["prapor"].intra_trader_deps:
        assert nodes[dep.target_id].position.x > nodes[dep.source_id].position.x


def test_lane_height_covers_content():
    groups = split_quests_by_trader(_quests())
    for group in groups.values():
        lane = layout_trader_lane(group)
        assert lane.lane_height >= lane.content_height
        assert lane.lane_height >= LANE_CONFIG.base_lane_height
        for node in lane.nodes:
            assert node.position.y >= 0
            assert node.position.y + QUEST_NODE.height <= lane.lane_height


def test_single_quest_lane_uses_minimum_height():
    groups = split_quests_by_trader(_quests())
    lane = layout_trader_lane(groups["btr"])
    assert lane.lane_height == LANE_CONFIG.base_lane_height
    assert lane.nodes[0].is_root and lane.nodes[0].is_leaf


def test_root_and_leaf_flags_use_lane_edges_only():
    groups = split_quests_by_trader(_quests())
    nodes = {node.id: node for node in layout_trader_lane(groups["therapist"]).nodes}
    # shortage depends on a prapor quest but is still the lane root
    assert nodes["shortage"].is_root and not nodes["shortage"].is_leaf
    assert nodes["sanitary"].is_leaf and not nodes["sanitary"].is_root

    prapor = {node.id: node for node in layout_trader_lane(groups["prapor"]).nodes}
    # checking leads to a skier quest but is not a lane leaf
    assert not prapor["checking"].is_leaf


def test_lanes_are_stacked_without_overlap():
    graph = build_trader_lane_graph(_quests())
    assert graph.trader_order == ["prapor", "therapist", "skier", "btr"]

    offsets = [graph.lane_offsets[t] for t in graph.trader_order]
    assert offsets[0].y == GLOBAL_LAYOUT.marginy
    for upper, lower in zip(offsets, offsets[1:]):
        assert lower.y == pytest.approx(upper.y + upper.height + LANE_CONFIG.lane_spacing)


def test_quest_nodes_stay_inside_their_lane():
    quests = _quests()
    graph = build_trader_lane_graph(quests)
    x_offset = GLOBAL_LAYOUT.marginx + LANE_CONFIG.trader_node_width + LANE_CONFIG.trader_to_quest_gap
    for quest in quests:
        node = _quest_nodes(graph)[quest.id]
        lane = graph.lane_offsets[quest.trader_id]
        assert lane.y <= node.position.y
        assert node.position.y + QUEST_NODE.height <= lane.y + lane.height
        assert node.position.x >= x_offset


def test_trader_headers():
    graph = build_trader_lane_graph(_quests(), traders=[Trader(id="Prapor", name="Prapor the Trader")])
    headers = {node.trader_id: node for node in graph.nodes if isinstance(node, TraderNode)}
    assert set(headers) == {"prapor", "therapist", "skier", "btr"}

    prapor = headers["prapor"]
    lane = graph.lane_offsets["prapor"]
    assert prapor.id == "trader-prapor"
    assert prapor.trader_name == "Prapor the Trader"
    assert prapor.position.x == GLOBAL_LAYOUT.marginx
    assert prapor.position.y + LANE_CONFIG.trader_node_height / 2 == pytest.approx(lane.y + lane.height / 2)
    assert (prapor.quest_count, prapor.completed_count) == (4, 1)
    assert prapor.progress_percent == 25.0


def test_default_graph_has_no_cross_trader_edges():
    quests = _quests()
    traders = {quest.id: quest.trader_id for quest in quests}
    graph = build_trader_lane_graph(quests)
    assert graph.edges
    assert all(traders[edge.source] == traders[edge.target] for edge in graph.edges)


def test_focus_dims_edges_outside_chain():
    quests = _quests()
    options = GraphOptions.for_focus("sanitary", quests)
    assert options.focus_chain == {"debut", "shortage", "sanitary"}

    graph = build_trader_lane_graph(quests, options=options)
    edges = {edge.id: edge for edge in graph.edges}
    assert edges["shortage-sanitary"].style.stroke_width == 3
    assert edges["shortage-sanitary"].style.opacity == 0.4
    assert edges["debut-checking"].style.stroke == EDGE_COLOR_DIMMED
    assert edges["debut-checking"].animated is False

    nodes = _quest_nodes(graph)
    assert nodes["sanitary"].is_focused and nodes["sanitary"].has_focus_mode
    assert nodes["debut"].is_in_focus_chain and not nodes["bp"].is_in_focus_chain


def test_available_edges_animate_without_focus():
    graph = build_trader_lane_graph(_quests())
    edges = {edge.id: edge for edge in graph.edges}
    assert edges["debut-checking"].animated is True
    assert edges["checking-bp"].animated is False


def test_cross_trader_edges_emitted_once():
    groups = split_quests_by_trader(_quests())
    edges = build_cross_trader_edges(groups)
    assert sorted(edge.id for edge in edges) == ["cross-checking-supplier", "cross-debut-shortage"]
    assert all(edge.style.dash_array == "6,4" and edge.style.opacity == 0.6 for edge in edges)

    dimmed = build_cross_trader_edges(groups, focus_chain={"debut", "shortage"}, has_focus_mode=True)
    by_id = {edge.id: edge for edge in dimmed}
    assert by_id["cross-debut-shortage"].style.opacity == 0.6
    assert by_id["cross-checking-supplier"].style.opacity == 0.2


def test_global_graph_aligns_roots_left():
    quests = _quests()
    graph = build_quest_graph(quests)
    nodes = {node.id: node for node in graph.nodes}
    roots = [node for node in nodes.values() if node.is_root]
    assert {node.id for node in roots} == {"debut", "stash"}
    assert min(node.position.x for node in roots) == pytest.approx(GLOBAL_LAYOUT.marginx)
    assert len(graph.edges) == 7
    assert nodes["supplier"].position.x > nodes["checking"].position.x


def test_graph_serializes():
    data = build_trader_lane_graph(_quests()).to_dict()
    assert data["trader_order"][0] == "prapor"
    assert data["lane_offsets"]["prapor"]["y"] == GLOBAL_LAYOUT.marginy
    assert {node["type"] for node in data["nodes"]} == {"quest", "trader"}


def test_quest_nodes_carry_status_colors():
    nodes = _quest_nodes(build_trader_lane_graph(_quests()))
    assert nodes["debut"].colors == STATUS_COLORS["completed"]
    assert nodes["bp"].to_dict()["colors"] == STATUS_COLORS["locked"]
