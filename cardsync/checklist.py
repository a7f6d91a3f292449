"""
Checklist reconciliation.

Tasks are matched to checklist items by name, never by id. Matchers are
tried in order for each task and the first one that returns an item wins:

    1. ExactMatcher: normalized names are equal
    2. ContainmentMatcher: one normalized name contains the other
    3. KeywordMatcher: item contains any task token longer than 3 chars

An item's completion state is written only when it disagrees with its
task. Unmatched tasks are logged and skipped. A card with no checklists
gets one seeded from the task list.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .description import strip_glyph
from .schema import Task, Checklist, ChecklistItem

logger = logging.getLogger(__name__)

DEFAULT_CHECKLIST_NAME = "Development Tasks"

_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^a-z0-9 ]")


def normalize(text: str) -> str:
    """Glyph-free, lower-case, [a-z0-9 ] only, single-spaced."""
    text = strip_glyph(text or "").lower()
    text = _WHITESPACE_RE.sub(" ", text)
    text = _DISALLOWED_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


# (normalized name, item) pairs, in checklist order
Candidate = Tuple[str, ChecklistItem]


class ExactMatcher:
    name = "exact"

    def match(self, needle: str, candidates: Sequence[Candidate]) -> Optional[ChecklistItem]:
        for normalized, item in candidates:
            if normalized == needle:
                return item
        return None


class ContainmentMatcher:
    name = "containment"

    def match(self, needle: str, candidates: Sequence[Candidate]) -> Optional[ChecklistItem]:
        for normalized, item in candidates:
            if normalized and (needle in normalized or normalized in needle):
                return item
        return None


class KeywordMatcher:
    name = "keyword"
    min_length = 4

    def match(self, needle: str, candidates: Sequence[Candidate]) -> Optional[ChecklistItem]:
        keywords = [w for w in needle.split(" ") if len(w) >= self.min_length]
        if not keywords:
            return None
        for normalized, item in candidates:
            if any(k in normalized for k in keywords):
                return item
        return None


DEFAULT_MATCHERS = (ExactMatcher(), ContainmentMatcher(), KeywordMatcher())


def match_item(task: Task, candidates: Sequence[Candidate], matchers=DEFAULT_MATCHERS):
    """Return (item, matcher name) for the first tier that matches, else (None, None)."""
    needle = normalize(task.content)
    if not needle:
        return None, None
    for matcher in matchers:
        item = matcher.match(needle, candidates)
        if item is not None:
            return item, matcher.name
    return None, None


@dataclass
class ChecklistUpdate:
    """One item whose completion state must change."""
    checklist_id: str
    item: ChecklistItem
    completed: bool


@dataclass
class ChecklistPlan:
    updates: List[ChecklistUpdate] = field(default_factory=list)
    unmatched: List[Task] = field(default_factory=list)
    matched: int = 0


def plan_checklist_updates(checklists: Sequence[Checklist], tasks: Sequence[Task],
                           matchers=DEFAULT_MATCHERS) -> ChecklistPlan:
    """
    Work out which items need a completion change.

    Items across all checklists are candidates; an item claimed by one task
    is not offered to later tasks.
    """
    owner = {}
    candidates: List[Candidate] = []
    for checklist in checklists:
        for item in checklist.items:
            owner[item.id] = checklist.id
            candidates.append((normalize(item.name), item))

    plan = ChecklistPlan()
    for task in tasks:
        item, tier = match_item(task, candidates, matchers)
        if item is None:
            logger.info("No checklist item matches task: %s", task.content)
            plan.unmatched.append(task)
            continue

        logger.debug("Task %r matched item %r (%s)", task.content, item.name, tier)
        plan.matched += 1
        candidates = [c for c in candidates if c[1] is not item]

        if item.completed != task.is_completed:
            plan.updates.append(ChecklistUpdate(owner[item.id], item, task.is_completed))
    return plan


class ChecklistReconciler:
    """Applies a checklist plan through a board client."""

    def __init__(self, client, pace=None, checklist_name: str = DEFAULT_CHECKLIST_NAME):
        self.client = client
        self.pace = pace or (lambda: None)
        self.checklist_name = checklist_name

    def reconcile(self, card_id: str, tasks: Sequence[Task]) -> ChecklistPlan:
        """Bring checklist items in line with tasks. Returns the applied plan."""
        checklists = self.client.get_checklists(card_id)

        if not checklists:
            if not tasks:
                return ChecklistPlan()
            self.pace()
            seeded = self.client.create_checklist(
                card_id, self.checklist_name, [t.content for t in tasks], pace=self.pace
            )
            logger.info("Created checklist %r with %d items", self.checklist_name, len(tasks))
            checklists = [seeded]

        plan = plan_checklist_updates(checklists, tasks)
        for update in plan.updates:
            self.pace()
            self.client.update_checklist_item(card_id, update.item.id, update.completed)
            update.item.completed = update.completed
        if plan.updates:
            logger.info("Updated %d checklist item(s)", len(plan.updates))
        return plan
