from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Sequence, Set

import networkx as nx

from .models import Quest, QuestStatus

logger = logging.getLogger(__name__)


def build_quest_map(quests: Iterable[Quest]) -> Dict[str, Quest]:
    return {quest.id: quest for quest in quests}


def dependency_digraph(quests: Sequence[Quest]) -> nx.DiGraph:
    """Prerequisite -> dependent graph. Edges to quests outside the set are skipped."""
    graph = nx.DiGraph()
    graph.add_nodes_from(quest.id for quest in quests)
    for quest in quests:
        for dep in quest.depends_on:
            if dep.required_quest_id not in graph:
                logger.debug("Skipping %s -> %s: prerequisite not loaded", dep.required_quest_id, quest.id)
                continue
            graph.add_edge(dep.required_quest_id, quest.id)
    return graph


def compute_quest_status(quest: Quest, quest_map: Mapping[str, Quest]) -> QuestStatus:
    """
    Reachability status: explicit user status wins, otherwise a quest is
    available once every loaded prerequisite is completed.

    Reads computed_status of the prerequisites, so callers must evaluate in
    dependency order (see resolve_quest_statuses).
    """
    if quest.progress_status is not None:
        return QuestStatus.coerce(quest.progress_status)

    prerequisites = [quest_map[dep.required_quest_id] for dep in quest.depends_on if dep.required_quest_id in quest_map]
    if all(prereq.computed_status is QuestStatus.COMPLETED for prereq in prerequisites):
        return QuestStatus.AVAILABLE
    return QuestStatus.LOCKED


def resolve_quest_statuses(quests: Sequence[Quest]) -> Dict[str, QuestStatus]:
    """
    Evaluate compute_quest_status for every quest, prerequisites first, and
    store the result on quest.computed_status.
    """
    quest_map = build_quest_map(quests)
    index = {quest.id: i for i, quest in enumerate(quests)}
    graph = dependency_digraph(quests)

    # Members of a cycle may read each other before evaluation.
    for quest in quests:
        quest.computed_status = QuestStatus.LOCKED

    if nx.is_directed_acyclic_graph(graph):
        order = list(nx.lexicographical_topological_sort(graph, key=index.get))
    else:
        logger.warning("Quest dependencies contain a cycle; statuses on the cycle are best effort")
        condensed = nx.condensation(graph)
        order = []
        for component in nx.lexicographical_topological_sort(
            condensed, key=lambda c: min(index[m] for m in condensed.nodes[c]["members"])
        ):
            order.extend(sorted(condensed.nodes[component]["members"], key=index.get))

    statuses: Dict[str, QuestStatus] = {}
    for quest_id in order:
        quest = quest_map[quest_id]
        quest.computed_status = compute_quest_status(quest, quest_map)
        statuses[quest_id] = quest.computed_status
    return statuses


def get_quest_chain(quest_id: str, quests: Sequence[Quest]) -> Set[str]:
    """
    The quest itself, everything it transitively depends on and everything
    that transitively depends on it.
    """
    quest_map = build_quest_map(quests)
    chain = {quest_id}
    chain |= _walk(quest_id, quest_map, lambda q: [dep.required_quest_id for dep in q.depends_on])
    chain |= _walk(quest_id, quest_map, lambda q: q.depended_on_by)
    return chain


def _walk(start: str, quest_map: Mapping[str, Quest], neighbours) -> Set[str]:
    visited: Set[str] = set()
    stack = [start]
    while stack:
        quest = quest_map.get(stack.pop())
        if quest is None:
            continue
        for next_id in neighbours(quest):
            if next_id != start and next_id not in visited:
                visited.add(next_id)
                stack.append(next_id)
    return visited


def link_dependents(quests: Sequence[Quest]) -> None:
    """Fill depended_on_by from depends_on for sources that only ship forward edges."""
    quest_map = build_quest_map(quests)
    for quest in quests:
        quest.depended_on_by = []
    for quest in quests:
        for dep in quest.depends_on:
            prereq = quest_map.get(dep.required_quest_id)
            if prereq is not None and quest.id not in prereq.depended_on_by:
                prereq.depended_on_by.append(quest.id)


def filter_quests_by_trader(quests: Iterable[Quest], trader_id: str) -> List[Quest]:
    # case-insensitive, like the lane keys
    trader_id = trader_id.lower()
    return [quest for quest in quests if quest.trader_id.lower() == trader_id]


def get_quest_maps(quests: Iterable[Quest]) -> List[str]:
    maps = {obj.map_name for quest in quests for obj in quest.objectives if obj.map_name}
    return sorted(maps)
