"""
Session persistence.

One YAML document per working directory holds the active card and the
last synced task snapshot. Every mutation is a whole-record
read-modify-write; transaction() serializes those cycles with an advisory
flock on a sibling lock file so two hook invocations cannot interleave.
"""
import contextlib
import fcntl
import logging
from pathlib import Path
from typing import Iterator, Optional, Sequence

import yaml

from .schema import Session, Task, utc_now

logger = logging.getLogger(__name__)

DEFAULT_SESSION_FILE = ".cardsync-session.yaml"


class SessionStore:
    """Whole-record load/save of the Session."""

    def __init__(self, path=None):
        self.path = Path(path) if path else Path.cwd() / DEFAULT_SESSION_FILE
        self.lock_path = self.path.with_name(self.path.name + ".lock")

    def load(self) -> Session:
        """Read the session. Missing or unreadable files load as empty."""
        if not self.path.exists():
            return Session()
        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError(f"expected a mapping, got {type(data).__name__}")
            return Session.from_dict(data)
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning(f"Failed to load session state from {self.path}: {e}")
            return Session()

    def save(self, session: Session) -> None:
        """Stamp last_activity and write atomically (temp file, then rename)."""
        session.last_activity = utc_now()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_file, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                session.to_dict(), f,
                default_flow_style=False, sort_keys=False, allow_unicode=True,
            )
        tmp_file.replace(self.path)

    @contextlib.contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Locked read-modify-write.

        Yields the loaded Session; saves it when the block exits normally.
        An exception inside the block leaves the file untouched.
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.lock_path, "a") as lock:
            fcntl.flock(lock, fcntl.LOCK_EX)
            try:
                session = self.load()
                yield session
                self.save(session)
            finally:
                fcntl.flock(lock, fcntl.LOCK_UN)

    # ── Mutations ──────────────────────────────────────────────────────────

    def bind_card(self, card_id: str, card_name: str,
                  tasks: Optional[Sequence[Task]] = None) -> Session:
        """Make card the active one. A different card starts a fresh session."""
        with self.transaction() as session:
            if session.active_card_id != card_id:
                session.created_at = utc_now()
                session.linked_cards = {}
            session.active_card_id = card_id
            session.active_card_name = card_name
            session.tracked_tasks = list(tasks or [])
            session.created_at = session.created_at or utc_now()
        return session

    def replace_tracked_tasks(self, tasks: Sequence[Task]) -> bool:
        """Overwrite the task snapshot. No-op without an active card."""
        with self.transaction() as session:
            active = session.has_active_card
            if active:
                session.tracked_tasks = list(tasks)
        return active

    def link_task(self, content: str, card_id: str) -> None:
        with self.transaction() as session:
            session.linked_cards[content] = card_id

    def clear(self) -> None:
        """Drop the active card, tracked tasks and links."""
        with self.transaction() as session:
            session.active_card_id = None
            session.active_card_name = None
            session.tracked_tasks = []
            session.linked_cards = {}
            session.created_at = None
