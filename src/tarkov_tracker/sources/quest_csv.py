from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from ..dependency_graph import link_dependents
from ..errors import QuestDataLoadError, QuestDataValidationError
from ..models import Objective, Quest, QuestDependency

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["name"]
COUNT_PATTERNS = [
    re.compile(r"^(?:\(optional\)\s*)?(?:eliminate|kill|find|hand over|obtain|stash|plant|mark|collect)\s+(\d+)\b", re.I),
    re.compile(r"\b(\d+)\s+times\b", re.I),
]
OPTIONAL_MARK = re.compile(r"^\(optional\)", re.I)


def normalize_list(raw) -> List[str]:
    if raw is None or (isinstance(raw, float) and pd.isna(raw)) or not raw:
        return []
    parts = [p.strip() for p in str(raw).split("|")]
    return [p for p in parts if p]


def clean_value(val):
    return None if val is None or (isinstance(val, float) and pd.isna(val)) else val


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def parse_required_level(requirements: List[str]) -> Optional[int]:
    for req in requirements:
        match = re.search(r"must be level\s*(\d+)", req, flags=re.IGNORECASE)
        if match:
            return int(match.group(1))
    return None


def parse_objective_count(text: str) -> Optional[int]:
    """'Eliminate 5 Scavs on Customs' -> 5. Binary objectives give None."""
    for pattern in COUNT_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def split_objective(text: str) -> Tuple[str, bool, Optional[int]]:
    """'(Optional) Find 3 Salewa' -> ('Find 3 Salewa', True, 3)"""
    return OPTIONAL_MARK.sub("", text).strip(), bool(OPTIONAL_MARK.match(text)), parse_objective_count(text)


def requires_kappa(lines: List[str]) -> bool:
    return any("kappa" in line.lower() for line in lines)


def _int_list(raw) -> List[int]:
    # a single entry reads back from CSV as a number
    if pd.api.types.is_number(raw) and not pd.isna(raw):
        return [int(raw)]
    try:
        return [int(float(part)) for part in normalize_list(raw)]
    except ValueError as exc:
        raise QuestDataValidationError(f"Expected a pipe list of numbers, got {raw!r}") from exc


def _is_kappa(row, requirements: List[str]) -> bool:
    flag = clean_value(row.get("kappa"))
    if flag is not None:
        return str(flag).strip().lower() in {"1", "true", "yes", "y"}
    return requires_kappa(requirements)


def _level(row, requirements: List[str]) -> Optional[int]:
    level = clean_value(row.get("level_required"))
    if level is not None and str(level).strip():
        try:
            return int(float(level))
        except ValueError as exc:
            raise QuestDataValidationError(f"Bad level_required value {level!r}") from exc
    return parse_required_level(requirements)


def _trader_name(row) -> Optional[str]:
    for column in ("trader", "given_by"):
        value = clean_value(row.get(column))
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def _trader_id(row) -> str:
    name = _trader_name(row)
    return name.split()[0].lower() if name else "unknown"


def _objectives(row, quest_id: str, location: Optional[str]) -> List[Objective]:
    """
    Objectives from the pipe list. Scraped files carry "objective_counts"
    (0 for binary) and "optional_objectives" (1/0) aligned with it; older
    files only have text and get parsed here.
    """
    texts = normalize_list(row.get("objectives"))
    counts = _int_list(clean_value(row.get("objective_counts")))
    optional = _int_list(clean_value(row.get("optional_objectives")))
    if len(counts) != len(texts) or len(optional) != len(texts):
        if counts or optional:
            logger.warning("Objective columns for %s do not line up, parsing text instead", quest_id)
        parsed = [split_objective(text) for text in texts]
    else:
        parsed = [(text, bool(opt), count or None) for text, opt, count in zip(texts, optional, counts)]

    return [
        Objective(
            id=f"{quest_id}-{i}",
            quest_id=quest_id,
            description=description,
            map_name=location,
            optional=is_optional,
            count=count,
        )
        for i, (description, is_optional, count) in enumerate(parsed, start=1)
    ]


def quests_from_frame(df: pd.DataFrame) -> List[Quest]:
    """
    Build quests from the scraper's pipe-delimited CSV layout (see
    ScrapedQuest.as_row in sources.wiki). Links named in "previous" and
    "leads_to" that point outside the frame are dropped.
    """
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise QuestDataValidationError(f"Quest CSV is missing columns: {', '.join(missing)}")

    quests: Dict[str, Quest] = {}
    links: List[Tuple[str, str]] = []
    for _, row in df.iterrows():
        name = clean_value(row.get("name"))
        if not name:
            continue
        name = str(name).strip()
        quest_id = slugify(name)
        if quest_id in quests:
            logger.warning("Duplicate quest %r, keeping the first row", name)
            continue

        requirements = normalize_list(row.get("requirements"))
        quests[quest_id] = Quest(
            id=quest_id,
            name=name,
            trader_id=_trader_id(row),
            trader_name=_trader_name(row),
            objectives=_objectives(row, quest_id, clean_value(row.get("location"))),
            level_required=_level(row, requirements),
            kappa_required=_is_kappa(row, requirements),
            wiki_url=clean_value(row.get("url")),
        )
        links.extend((slugify(prev), quest_id) for prev in normalize_list(row.get("previous")))
        links.extend((quest_id, slugify(nxt)) for nxt in normalize_list(row.get("leads_to")))

    for source, target in dict.fromkeys(links):
        if source not in quests or target not in quests:
            logger.warning("Dropping link %s -> %s: quest not in the data set", source, target)
            continue
        dependent = quests[target]
        dependent.depends_on.append(
            QuestDependency(required_quest_id=source, required_trader_id=quests[source].trader_id)
        )

    result = list(quests.values())
    link_dependents(result)
    return result


def load_quests(path: Path) -> List[Quest]:
    path = Path(path)
    if not path.exists():
        raise QuestDataLoadError(f"Quest file not found: {path}")
    try:
        df = pd.read_csv(path, encoding="utf-8")
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise QuestDataLoadError(f"Could not read {path}: {exc}") from exc
    quests = quests_from_frame(df)
    logger.info("Loaded %d quests from %s", len(quests), path)
    return quests
