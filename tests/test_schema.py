"""Tests for the card sync data model and status mapper."""
import pytest

from cardsync.errors import InvalidStatus, UnconfiguredList
from cardsync.schema import (
    BoardList, Card, Checklist, CommandResult, ListRole, Session, Task, TaskStatus,
)
from cardsync.status import BoardLayout, role_for_list_name, target_list


# ━━━ Task ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestTask:

    def test_status_string_is_coerced(self):
        task = Task("Write docs", "in_progress")
        assert task.status is TaskStatus.IN_PROGRESS

    def test_unknown_status_raises(self):
        with pytest.raises(InvalidStatus) as exc:
            Task("Write docs", "blocked")
        assert exc.value.status == "blocked"

    def test_invalid_status_is_a_value_error(self):
        with pytest.raises(ValueError):
            TaskStatus.from_str("done")

    def test_from_dict_reads_active_form(self):
        task = Task.from_dict({"content": "A", "status": "completed", "activeForm": "Doing A"})
        assert task.active_form == "Doing A"
        assert task.is_completed
        assert task.to_dict() == {"content": "A", "status": "completed", "activeForm": "Doing A"}

    def test_from_dict_rejects_non_mapping(self):
        with pytest.raises(ValueError):
            Task.from_dict("just a string")

    def test_tasks_are_immutable(self):
        task = Task("A")
        with pytest.raises(Exception):
            task.content = "B"


# ━━━ Remote entities ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_card_from_api():
    card = Card.from_api({
        "id": "c1", "name": "Auth", "desc": None, "idList": "L1",
        "shortUrl": "https://trello.com/c/x", "labels": [{"id": "lb", "name": "Bug", "color": "red"}],
    })
    assert card.description == ""
    assert card.url == "https://trello.com/c/x"
    assert card.labels[0].name == "Bug"


def test_checklist_from_api_reads_item_state():
    checklist = Checklist.from_api({
        "id": "cl", "name": "Development Tasks",
        "checkItems": [
            {"id": "i1", "name": "A", "state": "complete"},
            {"id": "i2", "name": "B", "state": "incomplete"},
        ],
    })
    assert [i.completed for i in checklist.items] == [True, False]


# ━━━ Session ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_session_from_dict_drops_duplicate_content():
    session = Session.from_dict({
        "active_card_id": "c1",
        "tracked_tasks": [
            {"content": "A", "status": "pending"},
            {"content": "A", "status": "completed"},
        ],
    })
    assert len(session.tracked_tasks) == 1
    assert session.tracked_tasks[0].status is TaskStatus.PENDING
    assert session.has_active_card


def test_empty_session_has_no_card():
    assert not Session().has_active_card


def test_command_result_str_is_message():
    assert str(CommandResult(True, "done")) == "done"


# ━━━ Status mapper ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestStatusMapper:

    @pytest.mark.parametrize("status,role", [
        ("pending", ListRole.TODO),
        ("in_progress", ListRole.IN_PROGRESS),
        ("completed", ListRole.DONE),
    ])
    def test_target_list(self, status, role):
        assert target_list(status) is role
        assert target_list(TaskStatus(status)) is role

    def test_target_list_rejects_unknown_status(self):
        with pytest.raises(InvalidStatus):
            target_list("archived")

    def test_list_role_accepts_value_or_name(self):
        assert ListRole.from_str("inProgress") is ListRole.IN_PROGRESS
        assert ListRole.from_str("in_progress") is ListRole.IN_PROGRESS
        with pytest.raises(ValueError):
            ListRole.from_str("icebox")

    @pytest.mark.parametrize("name,role", [
        ("To Do", ListRole.TODO),
        ("Backlog", ListRole.TODO),
        ("Doing", ListRole.IN_PROGRESS),
        ("QA", ListRole.REVIEW),
        ("Done ✔", ListRole.DONE),
        ("Ideas", None),
    ])
    def test_role_for_list_name(self, name, role):
        assert role_for_list_name(name) is role


class TestBoardLayout:

    def test_discover_first_list_per_role_wins(self):
        layout = BoardLayout.discover([
            BoardList("a", "Backlog"),
            BoardList("b", "To Do"),
            BoardList("c", "In Progress"),
            BoardList("d", "Done"),
        ])
        assert layout.list_id_for(ListRole.TODO) == "a"
        assert layout.list_id_for_status("completed") == "d"
        assert layout.role_of("c") is ListRole.IN_PROGRESS
        assert layout.list_name("b") == "To Do"
        assert layout.list_name("zzz") == "Unknown"

    @pytest.mark.parametrize("status", ["pending", "in_progress", "completed"])
    def test_status_round_trip(self, status):
        layout = BoardLayout.discover([
            BoardList("a", "To Do"), BoardList("b", "Doing"), BoardList("c", "Done"),
        ])
        list_id = layout.list_id_for_status(status)
        assert layout.role_of(list_id) is target_list(status)

    def test_overrides_beat_discovered_names(self):
        layout = BoardLayout.discover(
            [BoardList("a", "To Do"), BoardList("d", "Done")],
            {"todo": "explicit", "inProgress": "wip"},
        )
        assert layout.list_id_for(ListRole.TODO) == "explicit"
        assert layout.list_id_for(ListRole.IN_PROGRESS) == "wip"
        assert layout.list_id_for(ListRole.DONE) == "d"

    def test_missing_role_raises_unconfigured_list(self):
        layout = BoardLayout.discover([BoardList("a", "To Do")])
        with pytest.raises(UnconfiguredList) as exc:
            layout.list_id_for_status("completed")
        assert exc.value.role is ListRole.DONE
