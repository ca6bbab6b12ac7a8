"""
Objective-driven quest status.

These functions derive a quest's status from the progress recorded on its
objectives. They never look at prerequisites; see dependency_graph for the
reachability side.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, List, Mapping, Optional, Sequence

from .models import BinaryProgress, ObjectiveState, ProgressLike, Quest, QuestStatus
from .objectives import is_objective_complete


@dataclass(frozen=True)
class ObjectiveProgressSummary:
    total: int = 0
    completed: int = 0
    required_total: int = 0
    required_completed: int = 0


@dataclass(frozen=True)
class StatusChange:
    would_change: bool
    new_status: QuestStatus


@dataclass(frozen=True)
class StatusCounts:
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    available: int = 0
    locked: int = 0


# Click cycle used by the tracker. Locked quests cannot be cycled.
STATUS_CYCLE = {
    QuestStatus.LOCKED: None,
    QuestStatus.AVAILABLE: QuestStatus.IN_PROGRESS,
    QuestStatus.IN_PROGRESS: QuestStatus.COMPLETED,
    QuestStatus.COMPLETED: QuestStatus.AVAILABLE,
}


def objective_states(quest: Quest, progress_by_objective: Mapping[str, ProgressLike]) -> List[ObjectiveState]:
    """Join a quest's objectives with the user's progress records."""
    states = []
    for objective in quest.objectives:
        record = progress_by_objective.get(objective.id)
        states.append(
            ObjectiveState(id=objective.id, optional=objective.optional, progress=[record] if record is not None else [])
        )
    return states


def _first_progress(objective: ObjectiveState):
    if not objective.progress:
        return None
    return objective.progress[0]


def _required(objectives: Sequence[ObjectiveState]) -> List[ObjectiveState]:
    required = [obj for obj in objectives if obj.optional is not True]
    # All-optional quests still need every objective done.
    return required or list(objectives)


def compute_objective_progress(objectives: Sequence[ObjectiveState]) -> ObjectiveProgressSummary:
    if not objectives:
        return ObjectiveProgressSummary()

    required = _required(objectives)
    return ObjectiveProgressSummary(
        total=len(objectives),
        completed=sum(1 for obj in objectives if is_objective_complete(_first_progress(obj))),
        required_total=len(required),
        required_completed=sum(1 for obj in required if is_objective_complete(_first_progress(obj))),
    )


def compute_quest_status(
    stored_status,
    objectives: Sequence[ObjectiveState],
    default_status=QuestStatus.AVAILABLE,
) -> Optional[QuestStatus]:
    """
    Status implied by objective progress.

    LOCKED is sticky: progress never unlocks a quest, only an explicit status
    write does. Progress only moves a quest forward; with nothing completed the
    stored status (or the default) is returned unchanged.
    """
    stored = QuestStatus.coerce(stored_status)
    fallback = stored if stored is not None else QuestStatus.coerce(default_status)

    if stored is QuestStatus.LOCKED:
        return QuestStatus.LOCKED
    if not objectives:
        return fallback

    summary = compute_objective_progress(objectives)
    if summary.required_total > 0 and summary.required_completed == summary.required_total:
        return QuestStatus.COMPLETED
    if summary.required_completed > 0:
        return QuestStatus.IN_PROGRESS
    return fallback


def should_auto_complete_quest(objectives: Sequence[ObjectiveState]) -> bool:
    if not objectives:
        return False
    return all(is_objective_complete(_first_progress(obj)) for obj in _required(objectives))


def would_objective_change_quest_status(
    stored_status,
    objectives: Sequence[ObjectiveState],
    toggled_objective_id: str,
    new_completed: bool,
) -> StatusChange:
    current_status = compute_quest_status(stored_status, objectives)
    simulated = [
        replace(obj, progress=[BinaryProgress(completed=new_completed)]) if obj.id == toggled_objective_id else obj
        for obj in objectives
    ]
    new_status = compute_quest_status(stored_status, simulated)
    return StatusChange(would_change=new_status != current_status, new_status=new_status)


def next_status_in_cycle(status) -> Optional[QuestStatus]:
    return STATUS_CYCLE[QuestStatus.coerce(status)]


def summarize_statuses(quests: Iterable[Quest]) -> StatusCounts:
    counts = {status: 0 for status in QuestStatus}
    total = 0
    for quest in quests:
        counts[quest.computed_status] += 1
        total += 1
    return StatusCounts(
        total=total,
        completed=counts[QuestStatus.COMPLETED],
        in_progress=counts[QuestStatus.IN_PROGRESS],
        available=counts[QuestStatus.AVAILABLE],
        locked=counts[QuestStatus.LOCKED],
    )
