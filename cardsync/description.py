"""
Task block reconciliation for card descriptions.

A description is classified line by line into Prose, TaskLine or
SectionBreak. The first run of consecutive TaskLines is the task block:
it is dropped and re-rendered from the current task list in place, one
`- <glyph> <content>` line per task. Every other line passes through
untouched and in order. With no block present, a `## Current Tasks`
section is appended instead.

Reconciling an already reconciled body with the same tasks is a fixed point.
"""
import re
from dataclasses import dataclass
from typing import List, Sequence, Union

from .schema import Task, TaskStatus, STATUS_GLYPHS

TASK_SECTION_HEADING = "## Current Tasks"

# ⚙ may or may not carry the emoji variation selector
_GLYPH_RE = re.compile(r"^(?:✅|⚙️?|📋)\s*")
_BULLET_RE = re.compile(r"^[-*•]\s+(.+)$")
_CHECKBOX_RE = re.compile(r"^\[([ xX])\]\s+(.+)$")
_RULE_RE = re.compile(r"^(?:-{3,}|\*{3,}|_{3,}|(?:\*\s+){2,}\*|(?:-\s+){2,}-)$")


# ── Line classification ─────────────────────────────────────────────────────

@dataclass
class Prose:
    text: str


@dataclass
class SectionBreak:
    """Blank line, heading or horizontal rule."""
    text: str


@dataclass
class TaskLine:
    text: str
    glyph: str
    content: str


ClassifiedLine = Union[Prose, SectionBreak, TaskLine]


def split_glyph(text: str):
    """Split leading status glyphs off text. Returns (glyph, rest)."""
    glyph = ""
    rest = text
    match = _GLYPH_RE.match(rest)
    while match:
        glyph = glyph or match.group().strip()
        rest = rest[match.end():]
        match = _GLYPH_RE.match(rest)
    return glyph, rest


def strip_glyph(text: str) -> str:
    return split_glyph(text)[1].strip()


def classify_line(line: str) -> ClassifiedLine:
    stripped = line.strip()
    if not stripped or stripped.startswith("#") or _RULE_RE.match(stripped):
        return SectionBreak(line)

    match = _BULLET_RE.match(stripped)
    if match:
        rest = match.group(1)
        box = _CHECKBOX_RE.match(rest)
        if box:
            glyph, content = split_glyph(box.group(2))
            if box.group(1) in "xX":
                glyph = STATUS_GLYPHS[TaskStatus.COMPLETED]
            return TaskLine(line, glyph, content.strip())
        glyph, content = split_glyph(rest)
        return TaskLine(line, glyph, content.strip())

    match = _CHECKBOX_RE.match(stripped)
    if match:
        glyph, content = split_glyph(match.group(2))
        if match.group(1) in "xX":
            glyph = STATUS_GLYPHS[TaskStatus.COMPLETED]
        return TaskLine(line, glyph, content.strip())

    return Prose(line)


def classify(body: str) -> List[ClassifiedLine]:
    return [classify_line(line) for line in body.split("\n")]


# ── Rendering ───────────────────────────────────────────────────────────────

def render_task_line(task: Task) -> str:
    content = " ".join(strip_glyph(task.content).splitlines())
    return f"- {task.status.glyph} {content}"


def render_task_lines(tasks: Sequence[Task]) -> List[str]:
    return [render_task_line(t) for t in tasks]


# ── Reconciliation ──────────────────────────────────────────────────────────

def find_task_block(classified: Sequence[ClassifiedLine]):
    """Return (start, end) of the first TaskLine run, or None."""
    for start, entry in enumerate(classified):
        if isinstance(entry, TaskLine):
            end = start
            while end < len(classified) and isinstance(classified[end], TaskLine):
                end += 1
            return start, end
    return None


def reconcile_description(body: str, tasks: Sequence[Task]) -> str:
    """Return body with its task block regenerated from tasks."""
    body = body or ""
    lines = body.split("\n")
    block = find_task_block([classify_line(line) for line in lines])

    if block is None:
        if not tasks:
            return body
        return _append_task_section(body, tasks)

    start, end = block
    return "\n".join(lines[:start] + render_task_lines(tasks) + lines[end:])


def _append_task_section(body: str, tasks: Sequence[Task]) -> str:
    rendered = [TASK_SECTION_HEADING] + render_task_lines(tasks)
    if not body.strip():
        return "\n".join(rendered)
    lines = body.split("\n")
    if lines[-1].strip():
        lines.append("")
    return "\n".join(lines + rendered)


# ── Parsing ─────────────────────────────────────────────────────────────────

_GLYPH_STATUS = {glyph: status for status, glyph in STATUS_GLYPHS.items()}


def status_for_glyph(glyph: str) -> TaskStatus:
    if glyph.startswith("⚙"):
        return TaskStatus.IN_PROGRESS
    return _GLYPH_STATUS.get(glyph, TaskStatus.PENDING)


def parse_tasks_from_description(body: str) -> List[Task]:
    """Read every task-like line of a card body back into Tasks."""
    tasks: List[Task] = []
    seen = set()
    for entry in classify(body or ""):
        if not isinstance(entry, TaskLine) or not entry.content:
            continue
        if entry.content in seen:
            continue
        seen.add(entry.content)
        tasks.append(Task(
            content=entry.content,
            status=status_for_glyph(entry.glyph),
            active_form=f"Working on {entry.content}",
        ))
    return tasks
