"""Plan text helpers for creating a card from a planner's plan."""
import re
from typing import List, Optional

from .description import split_glyph
from .schema import Task, TaskStatus

DEFAULT_TITLE = "Development Task"

_PLAN_ITEM_RE = re.compile(r"^(?:[-*•]\s+|\[[ xX]\]\s+|\d+\.\s+)(.+)$")
_ITEM_PREFIX_RE = re.compile(r"^(?:[-*•]\s+)?(?:\[[ xX]\]\s+)?(?:\d+\.\s+)?")


def extract_title(plan: Optional[str]) -> str:
    """First plausible title line of the plan, minus heading marks."""
    for line in (plan or "").split("\n"):
        stripped = line.strip()
        if 5 < len(stripped) < 100 and not stripped.startswith(("-", "*")):
            return re.sub(r"^#+\s*", "", stripped)
    return DEFAULT_TITLE


def format_plan_description(plan: Optional[str]) -> str:
    if not plan or not plan.strip():
        return "\n".join([
            "## Development Task",
            "",
            "*Created from a planner session*",
            "",
            "### Tasks",
            "- Task planning in progress...",
            "",
            "---",
            "*Use `cardsync pickup` to resume work on this card*",
        ])
    return "\n".join([
        "## Development Plan",
        "",
        plan.strip("\n"),
        "",
        "---",
        "*Created from a planner session*",
    ])


def extract_tasks(plan: Optional[str]) -> List[Task]:
    """Bullets, checkboxes and numbered items of the plan, as Tasks."""
    tasks: List[Task] = []
    seen = set()
    for line in (plan or "").split("\n"):
        stripped = line.strip()
        if not _PLAN_ITEM_RE.match(stripped):
            continue

        glyph, content = split_glyph(_ITEM_PREFIX_RE.sub("", stripped, count=1))
        content = content.strip()
        if not content or content in seen:
            continue
        seen.add(content)

        lowered = stripped.lower()
        if "[x]" in lowered or glyph == "✅":
            status = TaskStatus.COMPLETED
        elif glyph.startswith("⚙") or "in progress" in lowered:
            status = TaskStatus.IN_PROGRESS
        else:
            status = TaskStatus.PENDING

        tasks.append(Task(content=content, status=status,
                          active_form=f"Working on {content}"))
    return tasks
