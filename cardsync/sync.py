"""
Sync orchestration.

sync_batch() is the active-card sync, run on every planner update:

    load session → (no active card: no-op success)
    → get card → reconcile description → reconcile checklist
    → post progress comment → persist tracked tasks

Any remote failure aborts the remaining remote calls and the session is
left as it was, so a retry re-derives from the last good snapshot. The
card's list is never changed here.

sync_tasks() is the one-card-per-task mode: each task's own card is moved
to the list for its status, or created there. Failures are per task.
"""
import logging
import time
from typing import Dict, List, Mapping, Optional, Sequence

from .checklist import ChecklistReconciler
from .description import reconcile_description
from .errors import CardSyncError
from .schema import Task, TaskStatus, SyncOutcome, TaskSyncResult
from .session import SessionStore
from .status import BoardLayout

logger = logging.getLogger(__name__)

DEFAULT_CALL_DELAY = 0.2


class Pacer:
    """Fixed delay between successive remote mutations in one batch."""

    def __init__(self, delay: float = DEFAULT_CALL_DELAY):
        self.delay = delay
        self.calls = 0

    def __call__(self) -> None:
        if self.calls and self.delay > 0:
            time.sleep(self.delay)
        self.calls += 1


def unique_tasks(tasks: Sequence[Task]) -> List[Task]:
    """Drop repeated content keys, keeping the first occurrence."""
    seen = set()
    result = []
    for task in tasks:
        if task.content in seen:
            logger.warning("Duplicate task in batch ignored: %s", task.content)
            continue
        seen.add(task.content)
        result.append(task)
    return result


def count_status(tasks: Sequence[Task], status: TaskStatus) -> int:
    return sum(1 for t in tasks if t.status == status)


def progress_summary(tasks: Sequence[Task]) -> str:
    """e.g. "1/3 completed (1 in progress)"."""
    completed = count_status(tasks, TaskStatus.COMPLETED)
    in_progress = count_status(tasks, TaskStatus.IN_PROGRESS)
    summary = f"{completed}/{len(tasks)} completed"
    if in_progress:
        summary += f" ({in_progress} in progress)"
    return summary


def build_task_card_description(task: Task) -> str:
    """Body for a card that tracks a single task."""
    return "\n".join([
        f"**Task Status:** {task.status.value}",
        f"**Active Form:** {task.active_form}",
        "",
        "**Source:** planner task sync",
        "",
        "---",
        "*This card is updated automatically from the planner task list.*",
    ])


class SyncOrchestrator:
    """Sequences the remote calls for one sync."""

    def __init__(self, client, store: SessionStore,
                 call_delay: float = DEFAULT_CALL_DELAY,
                 list_overrides: Optional[Mapping[str, str]] = None):
        self.client = client
        self.store = store
        self.call_delay = call_delay
        self.list_overrides = dict(list_overrides or {})
        self._layout: Optional[BoardLayout] = None

    def layout(self) -> BoardLayout:
        """Board layout, discovered once per orchestrator."""
        if self._layout is None:
            self._layout = BoardLayout.discover(self.client.get_lists(), self.list_overrides)
        return self._layout

    # ── Active card ────────────────────────────────────────────────────────

    def sync_batch(self, tasks: Sequence[Task], note: Optional[str] = None) -> SyncOutcome:
        """Sync the full task list to the active card."""
        tasks = unique_tasks(tasks)
        session = self.store.load()
        if not session.has_active_card:
            logger.info("No active card - skipping sync")
            return SyncOutcome(success=True, no_active_card=True, message="No active card")

        card_id = session.active_card_id
        completed = count_status(tasks, TaskStatus.COMPLETED)
        in_progress = count_status(tasks, TaskStatus.IN_PROGRESS)
        outcome = SyncOutcome(
            success=False,
            completed_count=completed,
            total_count=len(tasks),
            in_progress_count=in_progress,
            card_id=card_id,
        )
        logger.info(f"Syncing {len(tasks)} tasks to card: {session.active_card_name or card_id}")

        pace = Pacer(self.call_delay)
        try:
            card = self.client.get_card(card_id)

            # With nothing tracked before or now the card holds no task block,
            # so any bullet run left in the body belongs to the user
            if tasks or session.tracked_tasks:
                body = reconcile_description(card.description, tasks)
            else:
                body = card.description
            if body != card.description:
                pace()
                self.client.update_card(card_id, description=body)

            ChecklistReconciler(self.client, pace).reconcile(card_id, tasks)

            summary = progress_summary(tasks)
            pace()
            self.client.add_comment(card_id, f"{note}\n\n{summary}" if note else summary)

            self.store.replace_tracked_tasks(tasks)
        except (CardSyncError, OSError) as e:
            logger.error(f"Sync failed for card {card_id}: {e}")
            outcome.error = str(e)
            outcome.message = f"Sync failed: {e}"
            return outcome

        outcome.success = True
        outcome.message = f"Synced {len(tasks)} tasks: {summary}"
        logger.info(outcome.message)
        return outcome

    # ── One card per task ──────────────────────────────────────────────────

    def sync_tasks(self, tasks: Sequence[Task]) -> List[TaskSyncResult]:
        """Move or create one card per task. A failure only affects its task."""
        tasks = unique_tasks(tasks)
        try:
            layout = self.layout()
        except CardSyncError as e:
            logger.error(f"Cannot read board lists: {e}")
            return [TaskSyncResult(t.content, False, "skipped", error=str(e)) for t in tasks]

        links: Dict[str, str] = dict(self.store.load().linked_cards)
        pace = Pacer(self.call_delay)
        results = []
        for task in tasks:
            pace()
            results.append(self._sync_task(task, layout, links.get(task.content)))

        ok = sum(1 for r in results if r.success)
        logger.info(f"Sync completed: {ok}/{len(tasks)} tasks synced successfully")
        return results

    def _sync_task(self, task: Task, layout: BoardLayout,
                   card_id: Optional[str]) -> TaskSyncResult:
        try:
            list_id = layout.list_id_for_status(task.status)
            description = build_task_card_description(task)
            if card_id:
                self.client.move_card(card_id, list_id)
                self.client.update_card(card_id, description=description)
                self.client.add_comment(
                    card_id, f"Status updated to: {task.status.value} ({task.active_form})"
                )
                action = "moved" if task.is_completed else "updated"
            else:
                card = self.client.create_card(task.content, description, list_id)
                card_id = card.id
                self.store.link_task(task.content, card_id)
                action = "created"
        except (CardSyncError, OSError) as e:
            logger.error(f"Failed to sync task {task.content!r}: {e}")
            return TaskSyncResult(task.content, False, "skipped", card_id, str(e))

        logger.info(f"Task {task.content!r} {action} (card {card_id})")
        return TaskSyncResult(task.content, True, action, card_id)
