"""
Trello REST client.

Thin, synchronous wrapper over the Trello API: one HTTP request per call,
no retries. HTTP 404 raises NotFoundError; every other failure (non-2xx,
timeout, connection error, undecodable body) raises TransportError.
"""
import logging
from typing import Optional, List, Dict, Any, Sequence

import requests

from .errors import TransportError, NotFoundError
from .schema import Card, BoardList, Checklist, Label

logger = logging.getLogger(__name__)

TRELLO_API_URL = "https://api.trello.com/1"


class TrelloClient:
    """Board client for one Trello board."""

    def __init__(self, api_key: str, token: str, board_id: str,
                 base_url: str = TRELLO_API_URL, timeout: float = 15):
        self.api_key = api_key
        self.token = token
        self.board_id = board_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_config(cls, cfg) -> "TrelloClient":
        return cls(
            api_key=cfg.api_key,
            token=cfg.token,
            board_id=cfg.board_id,
            base_url=cfg.base_url,
            timeout=cfg.request_timeout,
        )

    def _request(self, method: str, endpoint: str,
                 params: Optional[Dict[str, Any]] = None) -> Any:
        """Make an authenticated request and return the decoded JSON body."""
        query = {"key": self.api_key, "token": self.token}
        if params:
            query.update({k: v for k, v in params.items() if v is not None})

        try:
            r = requests.request(
                method,
                f"{self.base_url}{endpoint}",
                params=query,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"Trello request {method} {endpoint} failed: {e}") from e

        if r.status_code == 404:
            raise NotFoundError(f"Trello resource not found: {endpoint}")
        if not r.ok:
            raise TransportError(
                f"Trello API error: {r.status_code} {r.reason} ({method} {endpoint})",
                status_code=r.status_code,
            )

        try:
            return r.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON from Trello ({method} {endpoint})") from e

    # ── Board ──────────────────────────────────────────────────────────────

    def get_board(self) -> Dict[str, Any]:
        return self._request("GET", f"/boards/{self.board_id}")

    def get_lists(self) -> List[BoardList]:
        data = self._request("GET", f"/boards/{self.board_id}/lists")
        return [BoardList.from_api(l) for l in data]

    def health_check(self) -> bool:
        """Check the board is reachable with these credentials."""
        try:
            board = self.get_board()
        except (TransportError, NotFoundError) as e:
            logger.error(f"Health check failed: {e}")
            return False
        logger.info(f"Health check passed - Board: {board.get('name', self.board_id)}")
        return True

    # ── Cards ──────────────────────────────────────────────────────────────

    def get_card(self, card_id: str) -> Card:
        return Card.from_api(self._request("GET", f"/cards/{card_id}"))

    def create_card(self, name: str, description: str, list_id: str) -> Card:
        data = self._request("POST", "/cards", {
            "name": name,
            "desc": description or "",
            "idList": list_id,
        })
        return Card.from_api(data)

    def update_card(self, card_id: str, name: Optional[str] = None,
                    description: Optional[str] = None) -> Card:
        data = self._request("PUT", f"/cards/{card_id}", {
            "name": name,
            "desc": description,
        })
        return Card.from_api(data)

    def move_card(self, card_id: str, list_id: str) -> Card:
        return Card.from_api(self._request("PUT", f"/cards/{card_id}", {"idList": list_id}))

    def add_comment(self, card_id: str, text: str) -> None:
        self._request("POST", f"/cards/{card_id}/actions/comments", {"text": text})

    def search_cards(self, query: str, limit: int = 10) -> List[Card]:
        data = self._request("GET", "/search", {
            "query": query,
            "idBoards": self.board_id,
            "modelTypes": "cards",
            "card_fields": "name,desc,idList,url,shortUrl,dateLastActivity",
            "cards_limit": limit,
        })
        return [Card.from_api(c) for c in data.get("cards") or []]

    # ── Checklists ─────────────────────────────────────────────────────────

    def get_checklists(self, card_id: str) -> List[Checklist]:
        data = self._request("GET", f"/cards/{card_id}/checklists")
        return [Checklist.from_api(c) for c in data]

    def create_checklist(self, card_id: str, name: str,
                         item_names: Sequence[str], pace=None) -> Checklist:
        """Create a checklist and append items in order. pace() runs before each item."""
        checklist = Checklist.from_api(
            self._request("POST", "/checklists", {"idCard": card_id, "name": name})
        )
        for item_name in item_names:
            if pace:
                pace()
            self._request("POST", f"/checklists/{checklist.id}/checkItems", {
                "name": item_name,
                "pos": "bottom",
            })
        # Re-read so item ids and order come from the server
        return Checklist.from_api(self._request("GET", f"/checklists/{checklist.id}"))

    def update_checklist_item(self, card_id: str, item_id: str, completed: bool) -> None:
        self._request("PUT", f"/cards/{card_id}/checkItem/{item_id}", {
            "state": "complete" if completed else "incomplete",
        })

    # ── Labels ─────────────────────────────────────────────────────────────

    def get_board_labels(self) -> List[Label]:
        data = self._request("GET", f"/boards/{self.board_id}/labels")
        return [Label.from_api(l) for l in data]

    def ensure_label(self, name: str, color: str) -> str:
        """Return the id of the board label called name, creating it if needed."""
        for label in self.get_board_labels():
            if label.name.lower() == name.lower():
                return label.id
        data = self._request("POST", "/labels", {
            "name": name,
            "color": color,
            "idBoard": self.board_id,
        })
        return data["id"]

    def add_label_to_card(self, card_id: str, label_id: str) -> None:
        self._request("POST", f"/cards/{card_id}/idLabels", {"value": label_id})
