"""
Layered (Sugiyama-style) layout for directed graphs.

The pipeline is the classic one:

1. break cycles by reversing edges until the graph is acyclic,
2. assign ranks so that every edge points to a strictly higher rank,
3. split edges spanning several ranks with dummy nodes,
4. order each rank with alternating barycenter sweeps, keeping the ordering
   with the fewest crossings,
5. assign coordinates: ranks are spaced along the flow axis, nodes inside a
   rank are packed along the other axis and pulled toward their neighbours.

All nodes share one box size. Positions are box centres. The result is
deterministic for a given input order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterable, List, Sequence, Tuple

import networkx as nx

from .config import GLOBAL_LAYOUT, QUEST_NODE, LayoutConfig, NodeSize

logger = logging.getLogger(__name__)

# Coordinate refinement passes after packing.
ALIGN_PASSES = 8


@dataclass
class LayeredLayout:
    positions: Dict[str, Tuple[float, float]] = field(default_factory=dict)
    ranks: Dict[str, int] = field(default_factory=dict)
    width: float = 0.0
    height: float = 0.0


@dataclass(frozen=True)
class _Dummy:
    source: str
    target: str
    step: int


def layered_layout(
    node_ids: Sequence[str],
    edges: Iterable[Tuple[str, str]],
    node_size: NodeSize = QUEST_NODE,
    config: LayoutConfig = GLOBAL_LAYOUT,
) -> LayeredLayout:
    if not node_ids:
        return LayeredLayout()

    index = {node_id: i for i, node_id in enumerate(node_ids)}
    graph = nx.DiGraph()
    graph.add_nodes_from(node_ids)
    for source, target in edges:
        if source == target or source not in index or target not in index:
            continue
        graph.add_edge(source, target)

    _break_cycles(graph)
    ranks = assign_ranks(graph, index)
    layers, up, down = _build_layers(graph, ranks, index)
    layers = _order_layers(layers, up, down, config.sweeps)
    cross = _assign_cross_coordinates(layers, up, down, node_size, config)

    horizontal = config.rankdir.upper() == "LR"
    rank_size = node_size.width if horizontal else node_size.height
    cross_size = node_size.height if horizontal else node_size.width
    rank_margin = config.marginx if horizontal else config.marginy
    cross_margin = config.marginy if horizontal else config.marginx

    # Shift so the topmost real box starts at the margin.
    real = [n for layer in layers for n in layer if not isinstance(n, _Dummy)]
    min_edge = min(cross[n] - cross_size / 2 for n in real)
    shift = cross_margin - min_edge

    layout = LayeredLayout(ranks={n: ranks[n] for n in node_ids})
    for node_id in node_ids:
        along = rank_margin + rank_size / 2 + ranks[node_id] * (rank_size + config.ranksep)
        across = cross[node_id] + shift
        layout.positions[node_id] = (along, across) if horizontal else (across, along)

    max_along = max(p[0] if horizontal else p[1] for p in layout.positions.values()) + rank_size / 2 + rank_margin
    max_across = max(p[1] if horizontal else p[0] for p in layout.positions.values()) + cross_size / 2 + cross_margin
    layout.width, layout.height = (max_along, max_across) if horizontal else (max_across, max_along)
    return layout


def _break_cycles(graph: nx.DiGraph) -> None:
    while not nx.is_directed_acyclic_graph(graph):
        cycle = nx.find_cycle(graph)
        source, target = cycle[-1][0], cycle[-1][1]
        logger.debug("Reversing %s -> %s to break a cycle", source, target)
        graph.remove_edge(source, target)
        # Reversing is only safe when no other path still joins the pair.
        if not graph.has_edge(target, source) and not nx.has_path(graph, source, target):
            graph.add_edge(target, source)


def assign_ranks(graph: nx.DiGraph, index: Dict[str, int]) -> Dict[str, int]:
    """
    Longest-path ranking, then sources are pulled forward to sit right
    before their nearest successor.
    """
    order = list(nx.lexicographical_topological_sort(graph, key=index.get))
    ranks: Dict[str, int] = {}
    for node in order:
        preds = list(graph.predecessors(node))
        ranks[node] = max(ranks[p] + 1 for p in preds) if preds else 0

    for node in reversed(order):
        if graph.in_degree(node) == 0 and graph.out_degree(node) > 0:
            ranks[node] = min(ranks[s] for s in graph.successors(node)) - 1
    return ranks


def _build_layers(graph: nx.DiGraph, ranks: Dict[str, int], index: Dict[str, int]):
    layers: List[List[Hashable]] = [[] for _ in range(max(ranks.values()) + 1)]
    up: Dict[Hashable, List[Hashable]] = {}
    down: Dict[Hashable, List[Hashable]] = {}

    def link(a, b):
        down.setdefault(a, []).append(b)
        up.setdefault(b, []).append(a)

    for node in nx.lexicographical_topological_sort(graph, key=index.get):
        layers[ranks[node]].append(node)
    for node in nx.lexicographical_topological_sort(graph, key=index.get):
        for succ in sorted(graph.successors(node), key=index.get):
            previous = node
            for step in range(1, ranks[succ] - ranks[node]):
                dummy = _Dummy(node, succ, step)
                layers[ranks[node] + step].append(dummy)
                link(previous, dummy)
                previous = dummy
            link(previous, succ)
    return layers, up, down


def count_crossings(layers: List[List[Hashable]], down: Dict[Hashable, List[Hashable]]) -> int:
    total = 0
    for upper, lower in zip(layers, layers[1:]):
        lower_pos = {n: i for i, n in enumerate(lower)}
        segments = [(i, lower_pos[v]) for i, u in enumerate(upper) for v in down.get(u, [])]
        for a in range(len(segments)):
            for b in range(a + 1, len(segments)):
                if (segments[a][0] - segments[b][0]) * (segments[a][1] - segments[b][1]) < 0:
                    total += 1
    return total


def _order_layers(layers, up, down, sweeps: int):
    best = [list(layer) for layer in layers]
    best_crossings = count_crossings(best, down)
    current = [list(layer) for layer in layers]

    for sweep in range(sweeps):
        if best_crossings == 0:
            break
        if sweep % 2 == 0:
            ranks, neighbours, fixed_offset = range(1, len(current)), up, -1
        else:
            ranks, neighbours, fixed_offset = range(len(current) - 2, -1, -1), down, 1
        for r in ranks:
            fixed_pos = {n: i for i, n in enumerate(current[r + fixed_offset])}
            current[r] = _barycenter_sort(current[r], neighbours, fixed_pos)

        crossings = count_crossings(current, down)
        if crossings < best_crossings:
            best_crossings = crossings
            best = [list(layer) for layer in current]
    return best


def _barycenter_sort(layer, neighbours, fixed_pos):
    keyed = []
    for i, node in enumerate(layer):
        linked = [fixed_pos[n] for n in neighbours.get(node, []) if n in fixed_pos]
        bary = sum(linked) / len(linked) if linked else float(i)
        keyed.append((bary, i, node))
    keyed.sort(key=lambda item: (item[0], item[1]))
    return [node for _, _, node in keyed]


def _assign_cross_coordinates(layers, up, down, node_size: NodeSize, config: LayoutConfig) -> Dict[Hashable, float]:
    horizontal = config.rankdir.upper() == "LR"
    cross_size = node_size.height if horizontal else node_size.width

    def half(node) -> float:
        if isinstance(node, _Dummy):
            return config.edgesep / 2
        return cross_size / 2 + config.nodesep / 2

    coords: Dict[Hashable, float] = {}
    for layer in layers:
        offset = 0.0
        for i, node in enumerate(layer):
            if i:
                offset += half(layer[i - 1]) + half(node)
            coords[node] = offset
        centre = offset / 2
        for node in layer:
            coords[node] -= centre

    for sweep in range(ALIGN_PASSES):
        if sweep % 2 == 0:
            ranks, neighbours = range(1, len(layers)), up
        else:
            ranks, neighbours = range(len(layers) - 2, -1, -1), down
        for r in ranks:
            _align_layer(layers[r], neighbours, coords, half)
    return coords


def _align_layer(layer, neighbours, coords, half) -> None:
    if not layer:
        return
    desired = []
    for node in layer:
        linked = [coords[n] for n in neighbours.get(node, [])]
        desired.append(sum(linked) / len(linked) if linked else coords[node])

    placed = []
    for i, node in enumerate(layer):
        value = desired[i]
        if i:
            value = max(value, placed[-1] + half(layer[i - 1]) + half(node))
        placed.append(value)

    shift = sum(d - p for d, p in zip(desired, placed)) / len(layer)
    for node, value in zip(layer, placed):
        coords[node] = value + shift
