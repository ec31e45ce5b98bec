from .controller import SearchController, run_search
from .types import (
    ResultKey,
    SearchFilters,
    SearchMode,
    SearchOutcome,
    SearchRequest,
    SearchResultItem,
    SearchType,
)

__all__ = [
    "ResultKey",
    "SearchController",
    "SearchFilters",
    "SearchMode",
    "SearchOutcome",
    "SearchRequest",
    "SearchResultItem",
    "SearchType",
    "run_search",
]
