from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union


class QuestStatus(str, Enum):
    LOCKED = "locked"
    AVAILABLE = "available"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @classmethod
    def coerce(cls, value) -> Optional["QuestStatus"]:
        """
        Accept a member, its value ("in_progress") or the stored upper-case
        name ("IN_PROGRESS"). None passes through.
        """
        if value is None or isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown quest status {value!r}") from None


@dataclass
class Objective:
    id: str
    quest_id: str
    description: str = ""
    map_name: Optional[str] = None
    optional: bool = False
    count: Optional[int] = None

    @property
    def is_numeric(self) -> bool:
        # count == 0 is binary
        return bool(self.count) and self.count > 0


@dataclass
class BinaryProgress:
    completed: bool = False
    source: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class NumericProgress:
    target: int
    current: int = 0
    completed: bool = False
    source: Optional[str] = None
    updated_at: Optional[str] = None


ObjectiveProgress = Union[BinaryProgress, NumericProgress]
ProgressLike = Union[ObjectiveProgress, Mapping[str, Any]]


@dataclass
class ObjectiveState:
    id: str
    optional: bool = False
    progress: Optional[Sequence[ProgressLike]] = None


@dataclass
class QuestDependency:
    required_quest_id: str
    required_trader_id: str
    requirement_status: List[str] = field(default_factory=lambda: ["complete"])


@dataclass
class Trader:
    id: str
    name: str


@dataclass
class Quest:
    id: str
    name: str
    trader_id: str
    trader_name: Optional[str] = None
    objectives: List[Objective] = field(default_factory=list)
    depends_on: List[QuestDependency] = field(default_factory=list)
    depended_on_by: List[str] = field(default_factory=list)
    level_required: Optional[int] = None
    kappa_required: bool = False
    wiki_url: Optional[str] = None
    progress_status: Optional[QuestStatus] = None
    computed_status: QuestStatus = QuestStatus.LOCKED

    @property
    def trader(self) -> Trader:
        return Trader(id=self.trader_id.lower(), name=self.trader_name or self.trader_id)


@dataclass
class IntraTraderDep:
    source_id: str
    target_id: str


@dataclass
class CrossTraderDep:
    source_quest_id: str
    source_trader_id: str
    target_quest_id: str
    target_trader_id: str


@dataclass
class TraderQuestGroup:
    trader_id: str
    trader: Trader
    quests: List[Quest] = field(default_factory=list)
    root_quests: List[Quest] = field(default_factory=list)
    intra_trader_deps: List[IntraTraderDep] = field(default_factory=list)
    cross_trader_deps: List[CrossTraderDep] = field(default_factory=list)


# Layout output. Everything below is derived and recomputed per call.


@dataclass
class Position:
    x: float
    y: float


@dataclass
class EdgeStyle:
    stroke: str
    stroke_width: float
    opacity: float
    dash_array: Optional[str] = None


@dataclass
class QuestEdge:
    id: str
    source: str
    target: str
    style: EdgeStyle
    animated: bool = False
    type: str = "default"
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class QuestNode:
    id: str
    position: Position
    quest: Quest
    is_root: bool = False
    is_leaf: bool = False
    is_selected: bool = False
    is_focused: bool = False
    is_in_focus_chain: bool = False
    has_focus_mode: bool = False
    colors: Dict[str, str] = field(default_factory=dict)
    type: str = "quest"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "position": asdict(self.position),
            "name": self.quest.name,
            "traderId": self.quest.trader_id.lower(),
            "status": self.quest.computed_status.value,
            "kappaRequired": self.quest.kappa_required,
            "isRoot": self.is_root,
            "isLeaf": self.is_leaf,
            "isSelected": self.is_selected,
            "isFocused": self.is_focused,
            "isInFocusChain": self.is_in_focus_chain,
            "hasFocusMode": self.has_focus_mode,
            "colors": dict(self.colors),
        }


@dataclass
class TraderNode:
    id: str
    position: Position
    trader_id: str
    trader_name: str
    color: str
    quest_count: int
    completed_count: int
    type: str = "trader"

    @property
    def progress_percent(self) -> float:
        return self.completed_count / self.quest_count * 100 if self.quest_count else 0.0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["progress_percent"] = self.progress_percent
        return data


@dataclass
class LaneOffset:
    y: float
    height: float
