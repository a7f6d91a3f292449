"""
Status mapper and board layout.

    pending     → todo
    in_progress → inProgress
    completed   → done

BoardLayout binds roles to concrete list ids, either from explicit config
or by matching list names. A role with no list raises UnconfiguredList so
callers can decide whether that is fatal for the batch or one task.
"""
import logging
from typing import Optional, Dict, Iterable, Mapping

from .errors import UnconfiguredList
from .schema import TaskStatus, ListRole, BoardList

logger = logging.getLogger(__name__)


_STATUS_TO_ROLE = {
    TaskStatus.PENDING: ListRole.TODO,
    TaskStatus.IN_PROGRESS: ListRole.IN_PROGRESS,
    TaskStatus.COMPLETED: ListRole.DONE,
}

# Lowercase substrings, checked in role order; first role that matches wins
LIST_NAME_PATTERNS = {
    ListRole.TODO: ["to do", "todo", "backlog", "planned"],
    ListRole.IN_PROGRESS: ["in progress", "doing", "active", "current"],
    ListRole.REVIEW: ["review", "testing", "qa"],
    ListRole.DONE: ["done", "completed", "finished", "closed"],
}


def target_list(status) -> ListRole:
    """Map a task status (enum or raw string) to its list role."""
    return _STATUS_TO_ROLE[TaskStatus.from_str(status)]


def role_for_list_name(name: str) -> Optional[ListRole]:
    lowered = name.lower()
    for role, patterns in LIST_NAME_PATTERNS.items():
        if any(p in lowered for p in patterns):
            return role
    return None


class BoardLayout:
    """Role ↔ list id bindings for one board."""

    def __init__(self, list_ids: Optional[Mapping[ListRole, str]] = None,
                 list_names: Optional[Mapping[str, str]] = None):
        self.list_ids: Dict[ListRole, str] = {
            role: list_id for role, list_id in (list_ids or {}).items() if list_id
        }
        self.list_names: Dict[str, str] = dict(list_names or {})

    @classmethod
    def discover(cls, lists: Iterable[BoardList],
                 overrides: Optional[Mapping[str, str]] = None) -> "BoardLayout":
        """
        Bind roles from board list names, then apply explicit overrides.

        overrides maps role values ("todo", "inProgress", ...) to list ids.
        """
        list_ids: Dict[ListRole, str] = {}
        names: Dict[str, str] = {}
        for board_list in lists:
            names[board_list.id] = board_list.name
            role = role_for_list_name(board_list.name)
            if role and role not in list_ids:
                list_ids[role] = board_list.id

        for key, list_id in (overrides or {}).items():
            if list_id:
                list_ids[ListRole.from_str(key)] = list_id

        logger.info(
            "Board layout: %s",
            {role.value: list_id for role, list_id in list_ids.items()},
        )
        return cls(list_ids, names)

    def list_id_for(self, role: ListRole) -> str:
        list_id = self.list_ids.get(role)
        if not list_id:
            raise UnconfiguredList(role)
        return list_id

    def list_id_for_status(self, status) -> str:
        return self.list_id_for(target_list(status))

    def role_of(self, list_id: str) -> Optional[ListRole]:
        for role, bound in self.list_ids.items():
            if bound == list_id:
                return role
        return None

    def list_name(self, list_id: str) -> str:
        return self.list_names.get(list_id, "Unknown")
