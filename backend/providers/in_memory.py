from __future__ import annotations

from typing import Iterable

from listings.types import Listing
from providers.types import CandidateProvider


class InMemoryProvider(CandidateProvider):
    """
    Serves a fixed list of listings.
    """

    def __init__(self, listings: Iterable[Listing] = ()) -> None:
        self._listings = list(listings)

    async def fetch_all(self) -> list[Listing]:
        return list(self._listings)
