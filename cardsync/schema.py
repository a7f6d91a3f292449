"""
Card sync data model.

Tasks come from the external planner and are immutable within one sync.
Cards, lists and checklists mirror Trello entities; only a card's id is
treated as stable identity. The Session binds one active card to the last
successfully synced task snapshot.
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from .errors import InvalidStatus


def utc_now() -> str:
    """ISO-8601 UTC timestamp."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class TaskStatus(Enum):
    """Planner task status."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @classmethod
    def from_str(cls, value) -> "TaskStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidStatus(value) from None

    @property
    def glyph(self) -> str:
        return STATUS_GLYPHS[self]


STATUS_GLYPHS = {
    TaskStatus.COMPLETED: "✅",
    TaskStatus.IN_PROGRESS: "⚙️",
    TaskStatus.PENDING: "📋",
}


class ListRole(Enum):
    """Lanes on the board, discovered by name and targeted by role."""
    TODO = "todo"
    IN_PROGRESS = "inProgress"
    REVIEW = "review"
    DONE = "done"

    @classmethod
    def from_str(cls, value: str) -> "ListRole":
        for role in cls:
            if value in (role.value, role.name, role.name.lower()):
                return role
        raise ValueError(f"Unknown list role: {value}")


@dataclass(frozen=True)
class Task:
    """One unit of work reported by the planner. `content` is the key."""
    content: str
    status: TaskStatus = TaskStatus.PENDING
    active_form: str = ""

    def __post_init__(self):
        # Accept raw strings from hook payloads and session files
        object.__setattr__(self, "status", TaskStatus.from_str(self.status))

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "status": self.status.value,
            "activeForm": self.active_form,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        if not isinstance(data, dict):
            raise ValueError(f"task must be a mapping, got {type(data).__name__}")
        content = str(data.get("content", ""))
        return cls(
            content=content,
            status=data.get("status", "pending"),
            active_form=data.get("activeForm") or data.get("active_form") or "",
        )


@dataclass
class Label:
    id: str
    name: str
    color: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Label":
        return cls(
            id=data.get("id", ""),
            name=data.get("name") or "",
            color=data.get("color") or "",
        )


@dataclass
class Card:
    """Remote card, as last fetched."""
    id: str
    name: str
    description: str = ""
    list_id: str = ""
    url: str = ""
    last_activity: str = ""
    labels: List[Label] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Card":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            description=data.get("desc") or "",
            list_id=data.get("idList", ""),
            url=data.get("shortUrl") or data.get("url") or "",
            last_activity=data.get("dateLastActivity") or "",
            labels=[Label.from_api(l) for l in data.get("labels") or []],
        )


@dataclass
class BoardList:
    id: str
    name: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "BoardList":
        return cls(id=data.get("id", ""), name=data.get("name", ""))


@dataclass
class ChecklistItem:
    id: str
    name: str
    completed: bool = False

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ChecklistItem":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            completed=data.get("state") == "complete",
        )


@dataclass
class Checklist:
    id: str
    name: str
    items: List[ChecklistItem] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Checklist":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            items=[ChecklistItem.from_api(i) for i in data.get("checkItems") or []],
        )


@dataclass
class Session:
    """
    Process-wide record binding the active card to its task snapshot.

    `tracked_tasks` is replaced wholesale on every successful sync.
    `linked_cards` maps task content to a card found by the linker.
    """
    active_card_id: Optional[str] = None
    active_card_name: Optional[str] = None
    tracked_tasks: List[Task] = field(default_factory=list)
    linked_cards: Dict[str, str] = field(default_factory=dict)
    created_at: Optional[str] = None
    last_activity: Optional[str] = None

    @property
    def has_active_card(self) -> bool:
        return bool(self.active_card_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active_card_id": self.active_card_id,
            "active_card_name": self.active_card_name,
            "tracked_tasks": [t.to_dict() for t in self.tracked_tasks],
            "linked_cards": dict(self.linked_cards),
            "created_at": self.created_at,
            "last_activity": self.last_activity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        raw_tasks = data.get("tracked_tasks") or []
        if not isinstance(raw_tasks, list):
            raise ValueError("tracked_tasks must be a list")
        tasks = []
        seen = set()
        for raw in raw_tasks:
            task = Task.from_dict(raw)
            # At most one task per content key
            if task.content in seen:
                continue
            seen.add(task.content)
            tasks.append(task)
        linked = data.get("linked_cards") or {}
        if not isinstance(linked, dict):
            raise ValueError("linked_cards must be a mapping")
        return cls(
            active_card_id=data.get("active_card_id"),
            active_card_name=data.get("active_card_name"),
            tracked_tasks=tasks,
            linked_cards={str(k): str(v) for k, v in linked.items()},
            created_at=data.get("created_at"),
            last_activity=data.get("last_activity"),
        )


@dataclass
class SyncOutcome:
    """Result of one sync_batch call."""
    success: bool
    completed_count: int = 0
    total_count: int = 0
    in_progress_count: int = 0
    card_id: Optional[str] = None
    no_active_card: bool = False
    error: Optional[str] = None
    message: str = ""


@dataclass
class TaskSyncResult:
    """Result of syncing one task to its own card."""
    content: str
    success: bool
    action: str                    # "created" | "updated" | "moved" | "skipped"
    card_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class CommandResult:
    """Human-readable outcome of a caller-facing operation."""
    ok: bool
    message: str
    card_id: Optional[str] = None

    def __str__(self) -> str:
        return self.message
