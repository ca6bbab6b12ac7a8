from __future__ import annotations

from typing import Any, Mapping, Optional

from .models import BinaryProgress, NumericProgress, Objective, ObjectiveProgress, ProgressLike


def progress_from_record(record: Mapping[str, Any]) -> ObjectiveProgress:
    """
    Turn a loose progress record into a tagged progress value.
    A missing, null or zero target means the objective is binary.
    """
    target = record.get("target")
    source = record.get("source")
    updated_at = record.get("updated_at") or record.get("updatedAt")
    if not target:
        return BinaryProgress(completed=record.get("completed") is True, source=source, updated_at=updated_at)
    return NumericProgress(
        target=int(target),
        current=int(record.get("current") or 0),
        completed=record.get("completed") is True,
        source=source,
        updated_at=updated_at,
    )


def as_progress(progress: Optional[ProgressLike]) -> Optional[ObjectiveProgress]:
    if progress is None or isinstance(progress, (BinaryProgress, NumericProgress)):
        return progress
    return progress_from_record(progress)


def is_objective_complete(progress: Optional[ProgressLike]) -> bool:
    progress = as_progress(progress)
    if progress is None:
        return False
    if isinstance(progress, NumericProgress) and progress.target:
        # The counter wins over a stale completed flag.
        return (progress.current or 0) >= progress.target
    return progress.completed is True


def objective_counter_label(objective: Objective, progress: Optional[ProgressLike]) -> Optional[str]:
    """Return "current/count" for numeric objectives, None for binary ones."""
    if not objective.is_numeric:
        return None
    return f"{_current(objective, as_progress(progress))}/{objective.count}"


def apply_objective_patch(
    objective: Objective,
    progress: Optional[ProgressLike],
    patch: Mapping[str, Any],
) -> ObjectiveProgress:
    """
    Apply a write-path patch ({"current": n} or {"completed": b}) and return
    the updated progress record. Numeric counters are clamped to 0..count.
    """
    progress = as_progress(progress)
    source = getattr(progress, "source", None)
    updated_at = patch.get("updated_at") or getattr(progress, "updated_at", None)

    if not objective.is_numeric:
        completed = progress.completed if progress is not None else False
        if "completed" in patch:
            completed = bool(patch["completed"])
        return BinaryProgress(completed=completed, source=source, updated_at=updated_at)

    target = objective.count
    current = _current(objective, progress)
    if "current" in patch and patch["current"] is not None:
        current = int(patch["current"])
    elif "completed" in patch:
        current = target if patch["completed"] else 0

    current = max(0, min(current, target))
    return NumericProgress(
        target=target,
        current=current,
        completed=current >= target,
        source=source,
        updated_at=updated_at,
    )


def increment_objective(objective: Objective, progress: Optional[ProgressLike], step: int = 1) -> ObjectiveProgress:
    progress = as_progress(progress)
    return apply_objective_patch(objective, progress, {"current": _current(objective, progress) + step})


def decrement_objective(objective: Objective, progress: Optional[ProgressLike], step: int = 1) -> ObjectiveProgress:
    progress = as_progress(progress)
    return apply_objective_patch(objective, progress, {"current": _current(objective, progress) - step})


def _current(objective: Objective, progress: Optional[ObjectiveProgress]) -> int:
    # A completed record without a counter counts as the full target.
    if isinstance(progress, NumericProgress):
        return progress.current
    if progress is not None and progress.completed:
        return objective.count or 0
    return 0
