from __future__ import annotations

from typing import Protocol

from listings.types import Listing


class CandidateProvider(Protocol):
    """
    Read endpoint returning every listing of one source type.

    Failures propagate as exceptions; the search controller degrades them to an
    empty candidate set.
    """

    async def fetch_all(self) -> list[Listing]: ...
