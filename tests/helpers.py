from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from tarkov_tracker.dependency_graph import link_dependents
from tarkov_tracker.models import ObjectiveState, Quest, QuestDependency, QuestStatus


def objective(obj_id: str, optional: bool = False, **progress) -> ObjectiveState:
    """ObjectiveState with a single progress record, or none when no fields are given."""
    return ObjectiveState(id=obj_id, optional=optional, progress=[progress] if progress else [])


def make_quests(
    specs: Iterable[Tuple[str, str]],
    deps: Iterable[Tuple[str, str]] = (),
    statuses: Optional[Dict[str, QuestStatus]] = None,
) -> List[Quest]:
    """
    specs: (quest_id, trader_id) pairs.
    deps: (prerequisite_id, dependent_id) pairs.
    """
    quests = [Quest(id=quest_id, name=quest_id.title(), trader_id=trader) for quest_id, trader in specs]
    by_id = {quest.id: quest for quest in quests}
    for source, target in deps:
        trader = by_id[source].trader_id if source in by_id else "unknown"
        by_id[target].depends_on.append(QuestDependency(required_quest_id=source, required_trader_id=trader))
    for quest_id, status in (statuses or {}).items():
        by_id[quest_id].computed_status = status
    link_dependents(quests)
    return quests
