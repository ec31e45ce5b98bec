from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, Protocol

from listings.types import SourceType
from search.types import ResultKey, SearchOutcome, SearchResultItem

logger = logging.getLogger(__name__)

_MESSAGE_TYPES: dict[SourceType, str] = {
    SourceType.vacancy: "vacancy_interest",
    SourceType.availability: "player_inquiry",
}


@dataclass(frozen=True)
class OutboundMessage:
    recipient_id: str
    subject: str
    body: str
    related_item_id: str
    message_type: str


class Messenger(Protocol):
    """
    Messaging collaborator. Returns True on success; False or an exception is a
    failed delivery.
    """

    async def send(self, message: OutboundMessage) -> bool: ...


@dataclass(frozen=True)
class BulkContactResult:
    succeeded: list[ResultKey] = field(default_factory=list)
    failed: dict[ResultKey, str] = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        total = self.success_count + self.failure_count
        noun = "person" if total == 1 else "people"
        if self.ok:
            return f"Successfully contacted {total} {noun}!"
        return (
            f"Contacted {self.success_count} of {total} {noun}; "
            f"{self.failure_count} message{'s' if self.failure_count != 1 else ''} failed to send."
        )


class SelectionManager:
    """
    Selected search results, keyed by listing identity.

    The selection only makes sense for the result list it was made on, so it is
    cleared whenever a new result list is bound.
    """

    def __init__(self) -> None:
        self._items: dict[ResultKey, SearchResultItem] = {}
        self._selected: set[ResultKey] = set()

    def bind(self, results: Iterable[SearchResultItem]) -> None:
        self._items = {r.key: r for r in results}
        self.clear()

    def on_results(self, outcome: SearchOutcome) -> None:
        # SearchController listener.
        self.bind(outcome.items)

    @property
    def selected(self) -> frozenset[ResultKey]:
        return frozenset(self._selected)

    def __len__(self) -> int:
        return len(self._selected)

    def is_selected(self, key: ResultKey) -> bool:
        return key in self._selected

    def toggle(self, key: ResultKey) -> bool:
        """
        Flip selection for `key`; returns the new state. Unknown keys are ignored.
        """
        if key not in self._items:
            return False
        if key in self._selected:
            self._selected.discard(key)
            return False
        self._selected.add(key)
        return True

    def select_all(self) -> None:
        self._selected = set(self._items)

    def clear(self) -> None:
        self._selected = set()

    def selected_items(self) -> list[SearchResultItem]:
        # Result-list order, not selection order.
        return [item for key, item in self._items.items() if key in self._selected]

    async def bulk_contact(self, subject: str, body: str, messenger: Messenger) -> BulkContactResult:
        subject = (subject or "").strip()
        body = (body or "").strip()
        if not subject or not body:
            raise ValueError("Subject and message are both required")

        items = self.selected_items()
        if not items:
            return BulkContactResult()

        # return_exceptions: one failed send must not cancel the others in flight.
        outcomes = await asyncio.gather(
            *(messenger.send(_message_for(item, subject, body)) for item in items),
            return_exceptions=True,
        )

        succeeded: list[ResultKey] = []
        failed: dict[ResultKey, str] = {}
        for item, outcome in zip(items, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Message to %s failed: %s: %s", item.listing.posted_by, type(outcome).__name__, outcome)
                failed[item.key] = str(outcome) or type(outcome).__name__
            elif not outcome:
                logger.warning("Message to %s was rejected", item.listing.posted_by)
                failed[item.key] = "rejected"
            else:
                succeeded.append(item.key)

        result = BulkContactResult(succeeded=succeeded, failed=failed)
        if result.ok:
            self.clear()
        else:
            # Keep only the failures selected so the user can retry them.
            self._selected = set(failed)
        logger.info("Bulk contact: %d sent, %d failed", result.success_count, result.failure_count)
        return result


def _message_for(item: SearchResultItem, subject: str, body: str) -> OutboundMessage:
    return OutboundMessage(
        recipient_id=item.listing.posted_by,
        subject=subject,
        body=body,
        related_item_id=item.listing.id,
        message_type=_MESSAGE_TYPES[item.listing.source_type],
    )
