"""
Card-task linker: find existing cards for tasks before the first sync.

Each task's content is searched on the board; a card whose name equals,
contains or is contained in the content (case-insensitive) is bound to
that task in the session. Search failures and misses are not errors.
"""
import logging
from typing import Dict, Optional, Sequence

from .errors import CardSyncError
from .schema import Card, Task
from .session import SessionStore

logger = logging.getLogger(__name__)


def card_matches(card: Card, content: str) -> bool:
    name = card.name.lower()
    text = content.lower()
    if not name or not text:
        return False
    return name == text or text in name or name in text


def find_matching_card(cards: Sequence[Card], content: str) -> Optional[Card]:
    for card in cards:
        if card_matches(card, content):
            return card
    return None


class CardTaskLinker:
    """Bootstraps task → card links by board search."""

    def __init__(self, client, store: SessionStore):
        self.client = client
        self.store = store

    def link_existing(self, tasks: Sequence[Task]) -> Dict[str, str]:
        """Search for each task and record matches. Returns the new links."""
        logger.info("Searching for existing cards to link with tasks")
        found: Dict[str, str] = {}

        for task in tasks:
            try:
                results = self.client.search_cards(task.content)
            except CardSyncError as e:
                logger.debug(f"Search failed for task {task.content!r}: {e}")
                continue

            card = find_matching_card(results, task.content)
            if card:
                found[task.content] = card.id
                logger.info(f"Linked task to existing card: {task.content} -> {card.id}")

        if found:
            with self.store.transaction() as session:
                session.linked_cards.update(found)
        return found
