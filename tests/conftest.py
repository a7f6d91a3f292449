"""Shared test fixtures: an in-memory board and a temp session store."""

import sys
from pathlib import Path

import pytest

# Ensure the package is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent))

from cardsync.errors import NotFoundError, TransportError
from cardsync.schema import BoardList, Card, Checklist, ChecklistItem
from cardsync.session import SessionStore


class FakeBoard:
    """
    Board client double. Records every call as (method, args) and can be
    told to fail a given method with `fail_on[method] = exception`.
    """

    def __init__(self, lists=None):
        self.lists = lists if lists is not None else [
            BoardList("L-todo", "To Do"),
            BoardList("L-doing", "Doing"),
            BoardList("L-review", "Review"),
            BoardList("L-done", "Done"),
        ]
        self.cards = {}
        self.checklists = {}
        self.comments = {}
        self.labels = {}
        self.card_labels = {}
        self.search_results = {}
        self.calls = []
        self.fail_on = {}
        self._seq = 0

    def _next_id(self, prefix):
        self._seq += 1
        return f"{prefix}{self._seq}"

    def _record(self, method, *args):
        self.calls.append((method, args))
        if method in self.fail_on:
            raise self.fail_on[method]

    def calls_to(self, method):
        return [args for name, args in self.calls if name == method]

    # ── helpers for tests ──

    def add_card(self, card_id, name, description="", list_id="L-todo"):
        self.cards[card_id] = Card(card_id, name, description, list_id)
        return self.cards[card_id]

    def add_checklist(self, card_id, names, completed=()):
        checklist = Checklist(self._next_id("CL"), "Development Tasks")
        for name in names:
            checklist.items.append(
                ChecklistItem(self._next_id("I"), name, name in completed)
            )
        self.checklists.setdefault(card_id, []).append(checklist)
        return checklist

    def item(self, card_id, name):
        for checklist in self.checklists.get(card_id, []):
            for item in checklist.items:
                if item.name == name:
                    return item
        raise KeyError(name)

    # ── board client interface ──

    def get_card(self, card_id):
        self._record("get_card", card_id)
        if card_id not in self.cards:
            raise NotFoundError(f"Trello resource not found: /cards/{card_id}")
        card = self.cards[card_id]
        return Card(card.id, card.name, card.description, card.list_id, card.url)

    def update_card(self, card_id, name=None, description=None):
        self._record("update_card", card_id, name, description)
        card = self.cards[card_id]
        if name is not None:
            card.name = name
        if description is not None:
            card.description = description
        return card

    def move_card(self, card_id, list_id):
        self._record("move_card", card_id, list_id)
        if card_id not in self.cards:
            raise NotFoundError(card_id)
        self.cards[card_id].list_id = list_id
        return self.cards[card_id]

    def add_comment(self, card_id, text):
        self._record("add_comment", card_id, text)
        self.comments.setdefault(card_id, []).append(text)

    def search_cards(self, query):
        self._record("search_cards", query)
        return list(self.search_results.get(query, []))

    def get_lists(self):
        self._record("get_lists")
        return list(self.lists)

    def get_checklists(self, card_id):
        self._record("get_checklists", card_id)
        return list(self.checklists.get(card_id, []))

    def create_checklist(self, card_id, name, item_names, pace=None):
        self._record("create_checklist", card_id, name, list(item_names))
        checklist = Checklist(self._next_id("CL"), name)
        for item_name in item_names:
            if pace:
                pace()
            checklist.items.append(ChecklistItem(self._next_id("I"), item_name, False))
        self.checklists.setdefault(card_id, []).append(checklist)
        return checklist

    def update_checklist_item(self, card_id, item_id, completed):
        self._record("update_checklist_item", card_id, item_id, completed)
        for checklist in self.checklists.get(card_id, []):
            for item in checklist.items:
                if item.id == item_id:
                    item.completed = completed

    def create_card(self, name, description, list_id):
        self._record("create_card", name, description, list_id)
        card = Card(self._next_id("C"), name, description, list_id,
                    url="https://trello.com/c/fake")
        self.cards[card.id] = card
        return card

    def ensure_label(self, name, color):
        self._record("ensure_label", name, color)
        for label_id, label_name in self.labels.items():
            if label_name.lower() == name.lower():
                return label_id
        label_id = self._next_id("LB")
        self.labels[label_id] = name
        return label_id

    def add_label_to_card(self, card_id, label_id):
        self._record("add_label_to_card", card_id, label_id)
        self.card_labels.setdefault(card_id, []).append(self.labels[label_id])


@pytest.fixture
def board():
    return FakeBoard()


@pytest.fixture
def store(tmp_path):
    return SessionStore(tmp_path / "session.yaml")


@pytest.fixture
def transport_error():
    return TransportError("Trello API error: 503 Service Unavailable", status_code=503)
