"""
Card lifecycle and caller-facing operations.

    NoCard ──create──▶ bound (todo)
    NoCard/bound ──pickup──▶ InProgress
    bound/InProgress ──sync──▶ same list (body + checklist only)
    any bound ──complete──▶ Done (session cleared)

Nothing leaves Done; new work starts with a fresh create or pickup.
Every operation returns a CommandResult (or SyncOutcome) and never raises
a CardSyncError past its own boundary.
"""
import logging
import re
from typing import List, Mapping, Optional, Sequence, Tuple

from .checklist import DEFAULT_CHECKLIST_NAME
from .client import TrelloClient
from .description import parse_tasks_from_description
from .errors import CardSyncError, NotFoundError
from .labels import apply_labels
from .linker import CardTaskLinker
from .plan import extract_title, format_plan_description, extract_tasks
from .schema import Card, CommandResult, ListRole, SyncOutcome, Task, TaskSyncResult
from .session import SessionStore
from .status import BoardLayout
from .sync import Pacer, SyncOrchestrator, DEFAULT_CALL_DELAY, progress_summary

logger = logging.getLogger(__name__)

_CARD_ID_RE = re.compile(r"^[0-9a-f]{24}$", re.IGNORECASE)

PICKUP_COMMENT = "🚀 **Card picked up for active work**\n\n*Moved to In Progress*"
MAX_CANDIDATES = 5


def looks_like_card_id(value: str) -> bool:
    return bool(_CARD_ID_RE.match((value or "").strip()))


def completion_comment(note: Optional[str] = None) -> str:
    comment = "✅ **Task Completed**"
    if note:
        comment += f"\n\n{note}"
    return comment


class CardWorkflow:
    """Create, pick up, sync and complete the session's active card."""

    def __init__(self, client, store: SessionStore,
                 call_delay: float = DEFAULT_CALL_DELAY,
                 list_overrides: Optional[Mapping[str, str]] = None):
        self.client = client
        self.store = store
        self.orchestrator = SyncOrchestrator(client, store, call_delay, list_overrides)
        self.linker = CardTaskLinker(client, store)

    @classmethod
    def from_config(cls, cfg) -> "CardWorkflow":
        return cls(
            TrelloClient.from_config(cfg),
            SessionStore(cfg.session_path),
            call_delay=cfg.call_delay,
            list_overrides=cfg.list_ids,
        )

    def layout(self) -> BoardLayout:
        return self.orchestrator.layout()

    def _failure(self, action: str, error: Exception) -> CommandResult:
        logger.error(f"Failed to {action}: {error}")
        return CommandResult(False, f"❌ Failed to {action}: {error}")

    # ── create ─────────────────────────────────────────────────────────────

    def create_from_plan(self, plan: Optional[str] = None) -> CommandResult:
        """Create a card in the todo list from plan text and make it active."""
        title = extract_title(plan)
        tasks = extract_tasks(plan)
        logger.info(f"Creating card from plan: {title}")

        try:
            list_id = self.layout().list_id_for(ListRole.TODO)
            card = self.client.create_card(title, format_plan_description(plan), list_id)
            if tasks:
                self.client.create_checklist(
                    card.id, DEFAULT_CHECKLIST_NAME, [t.content for t in tasks],
                    pace=Pacer(self.orchestrator.call_delay),
                )
        except CardSyncError as e:
            return self._failure("create card", e)

        labels = apply_labels(self.client, card.id, title, plan or "")

        try:
            self.store.bind_card(card.id, card.name, tasks)
        except OSError as e:
            return self._failure("save session", e)

        lines = [
            "✅ Card created",
            f"🎯 {card.name} ({card.id})",
            f"📊 List: {self.layout().list_name(list_id)}",
            f"☑️ Checklist: {len(tasks)} task(s)",
        ]
        if labels:
            lines.append(f"🏷️ Labels: {', '.join(labels)}")
        if card.url:
            lines.append(f"🔗 {card.url}")
        return CommandResult(True, "\n".join(lines), card.id)

    # ── pickup ─────────────────────────────────────────────────────────────

    def _resolve_card(self, identifier: str) -> Tuple[Optional[Card], List[Card]]:
        """Find a card by id or name. Returns (card, ambiguous candidates)."""
        if looks_like_card_id(identifier):
            try:
                return self.client.get_card(identifier), []
            except NotFoundError:
                logger.info(f"No card with id {identifier}, searching by name")

        results = self.client.search_cards(identifier)
        if len(results) == 1:
            return results[0], []
        exact = [c for c in results if c.name.lower() == identifier.lower()]
        if len(exact) == 1:
            return exact[0], []
        return None, results[:MAX_CANDIDATES]

    def pickup(self, identifier: str) -> CommandResult:
        """Move an existing card to In Progress and make it active."""
        identifier = (identifier or "").strip()
        if not identifier:
            return CommandResult(False, "❌ Card ID or name is required")
        logger.info(f"Picking up card: {identifier}")

        try:
            card, candidates = self._resolve_card(identifier)
            if card is None:
                if not candidates:
                    return CommandResult(False, f"❌ No card found matching: \"{identifier}\"")
                lines = ["🔍 Multiple cards found. Use a card id:"]
                lines += [f"- {c.name} ({c.id})" for c in candidates]
                return CommandResult(False, "\n".join(lines))

            target = self.layout().list_id_for(ListRole.IN_PROGRESS)
            moved = card.list_id != target
            if moved:
                self.client.move_card(card.id, target)
                self.client.add_comment(card.id, PICKUP_COMMENT)
        except CardSyncError as e:
            return self._failure("pick up card", e)

        tasks = parse_tasks_from_description(card.description)
        try:
            self.store.bind_card(card.id, card.name, tasks)
        except OSError as e:
            return self._failure("save session", e)

        lines = [
            "🎯 Picked up card",
            f"📋 {card.name} ({card.id})",
            f"📊 List: {self.layout().list_name(target)}",
        ]
        if moved:
            lines.append("🚀 Moved to In Progress")
        if tasks:
            lines.append("Tasks:")
            lines += [f"- {t.content} ({t.status.value})" for t in tasks]
        else:
            lines.append("No structured tasks found in card description")
        return CommandResult(True, "\n".join(lines), card.id)

    # ── sync / update ──────────────────────────────────────────────────────

    def sync(self, tasks: Sequence[Task]) -> SyncOutcome:
        return self.orchestrator.sync_batch(tasks)

    def update(self, note: Optional[str] = None) -> CommandResult:
        """Re-sync the tracked task snapshot, with an optional note."""
        session = self.store.load()
        if not session.has_active_card:
            return CommandResult(False, "❌ No active card in session. Use `cardsync pickup <card>` first.")

        outcome = self.orchestrator.sync_batch(session.tracked_tasks, note=note)
        if not outcome.success:
            return CommandResult(False, f"❌ Failed to update card: {outcome.error}", outcome.card_id)
        summary = progress_summary(session.tracked_tasks)
        return CommandResult(
            True,
            f"📋 Card updated: {session.active_card_name}\n📊 Progress: {summary}",
            outcome.card_id,
        )

    def link(self, tasks: Sequence[Task]) -> CommandResult:
        try:
            links = self.linker.link_existing(tasks)
        except OSError as e:
            return self._failure("save links", e)
        return CommandResult(True, f"🔗 Linked {len(links)}/{len(tasks)} task(s) to existing cards")

    def sync_tasks(self, tasks: Sequence[Task]) -> List[TaskSyncResult]:
        return self.orchestrator.sync_tasks(tasks)

    # ── complete ───────────────────────────────────────────────────────────

    def complete(self, note: Optional[str] = None) -> CommandResult:
        """Move the active card to Done and clear the session."""
        session = self.store.load()
        if not session.has_active_card:
            return CommandResult(False, "❌ No active card in session. Use `cardsync pickup <card>` first.")

        card_id = session.active_card_id
        try:
            done = self.layout().list_id_for(ListRole.DONE)
            self.client.move_card(card_id, done)
            self.client.add_comment(card_id, completion_comment(note))
        except CardSyncError as e:
            return self._failure("complete card", e)

        try:
            self.store.clear()
        except OSError as e:
            return self._failure("clear session", e)

        logger.info(f"Card {card_id} completed")
        return CommandResult(
            True,
            f"🎉 Task completed\n📋 {session.active_card_name}\n✅ Moved to Done, session cleared",
            card_id,
        )

    # ── status ─────────────────────────────────────────────────────────────

    def status(self) -> CommandResult:
        session = self.store.load()
        if not session.has_active_card:
            return CommandResult(
                True,
                "📋 No active card.\n"
                "Use `cardsync create` to start from a plan or `cardsync pickup <card>`.",
            )

        try:
            card = self.client.get_card(session.active_card_id)
            list_name = self.layout().list_name(card.list_id)
        except NotFoundError as e:
            return CommandResult(
                False,
                f"❌ Active card {session.active_card_id} no longer exists ({e}). "
                f"Use `cardsync pickup <card>` to start over.",
                session.active_card_id,
            )
        except CardSyncError as e:
            return self._failure("get status", e)

        lines = [
            f"🎯 {card.name} ({card.id})",
            f"📊 List: {list_name}",
            f"📈 Progress: {progress_summary(session.tracked_tasks)}",
        ]
        if card.last_activity:
            lines.append(f"🕒 Last activity: {card.last_activity}")
        if card.url:
            lines.append(f"🔗 {card.url}")
        lines += ["", card.description or "*No description*"]
        return CommandResult(True, "\n".join(lines), card.id)
