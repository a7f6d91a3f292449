"""
Rule-based card labelling.

Looks at a card's title and plan text and suggests board labels by
keyword. Applying labels is best effort: any board failure is logged and
the card is left as it is.
"""
import logging
import re
from typing import List, Tuple

from .errors import CardSyncError

logger = logging.getLogger(__name__)


# (label name, color, keywords)
LABEL_RULES: List[Tuple[str, str, List[str]]] = [
    ("Bug", "red", ["bug", "fix", "error", "issue"]),
    ("Feature", "green", ["feature", "enhancement", "new"]),
    ("Refactoring", "yellow", ["refactor", "cleanup", "optimization"]),
    ("Testing", "purple", ["test", "testing", "spec"]),
    ("Documentation", "blue", ["doc", "documentation", "readme"]),
    ("API", "orange", ["api", "endpoint", "service"]),
    ("Frontend", "pink", ["ui", "frontend", "component"]),
    ("Backend", "lime", ["backend", "database", "server"]),
]

_RULE_PATTERNS = [
    (name, color, re.compile(r"\b(?:" + "|".join(map(re.escape, words)) + r")\b"))
    for name, color, words in LABEL_RULES
]


def suggest_labels(title: str, text: str = "") -> List[Tuple[str, str]]:
    """Return (name, color) for every rule whose keywords appear."""
    haystack = f"{title}\n{text}".lower()
    return [(name, color) for name, color, pattern in _RULE_PATTERNS
            if pattern.search(haystack)]


def apply_labels(client, card_id: str, title: str, text: str = "") -> List[str]:
    """Find-or-create and attach suggested labels. Returns attached names."""
    attached = []
    for name, color in suggest_labels(title, text):
        try:
            label_id = client.ensure_label(name, color)
            client.add_label_to_card(card_id, label_id)
        except CardSyncError as e:
            logger.warning(f"Failed to add label {name}: {e}")
            continue
        attached.append(name)

    if attached:
        logger.info(f"Added {len(attached)} label(s) to card: {', '.join(attached)}")
    return attached
