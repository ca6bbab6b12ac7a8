from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence

from ..dependency_graph import resolve_quest_statuses
from ..errors import QuestDataLoadError, QuestDataValidationError
from ..models import ObjectiveProgress, Quest, QuestStatus
from ..objectives import progress_from_record
from ..quest_status import compute_quest_status, objective_states

logger = logging.getLogger(__name__)


@dataclass
class ProgressSnapshot:
    objectives: Dict[str, ObjectiveProgress] = field(default_factory=dict)
    quest_statuses: Dict[str, QuestStatus] = field(default_factory=dict)


def progress_from_json(data) -> ProgressSnapshot:
    """
    Expected shape:
    {"objectives": {objective_id: {completed, current, target, ...}},
     "quests": {quest_id: "COMPLETED"}}
    """
    if not isinstance(data, dict):
        raise QuestDataValidationError("Progress data must be a JSON object")
    objectives = data.get("objectives", {})
    quests = data.get("quests", {})
    if not isinstance(objectives, dict) or not isinstance(quests, dict):
        raise QuestDataValidationError("'objectives' and 'quests' must be JSON objects")

    snapshot = ProgressSnapshot()
    for objective_id, record in objectives.items():
        if not isinstance(record, dict):
            raise QuestDataValidationError(f"Progress for objective {objective_id!r} must be an object")
        snapshot.objectives[objective_id] = progress_from_record(record)
    for quest_id, status in quests.items():
        try:
            snapshot.quest_statuses[quest_id] = QuestStatus.coerce(status)
        except ValueError as exc:
            raise QuestDataValidationError(f"Unknown status {status!r} for quest {quest_id!r}") from exc
    return snapshot


def load_progress(path: Path) -> ProgressSnapshot:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise QuestDataLoadError(f"Progress file not found: {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise QuestDataLoadError(f"Could not read {path}: {exc}") from exc
    snapshot = progress_from_json(data)
    logger.info(
        "Loaded progress for %d objectives and %d quests from %s",
        len(snapshot.objectives),
        len(snapshot.quest_statuses),
        path,
    )
    return snapshot


def apply_progress(quests: Sequence[Quest], snapshot: ProgressSnapshot) -> List[Quest]:
    """
    Attach the user's progress to the quests: objective progress moves the
    explicit status forward, then reachability fills in the rest.
    """
    for quest in quests:
        explicit = snapshot.quest_statuses.get(quest.id)
        states = objective_states(quest, snapshot.objectives)
        # No default: untouched quests stay without an explicit status.
        quest.progress_status = compute_quest_status(explicit, states, default_status=None)

    resolve_quest_statuses(quests)
    return list(quests)
