"""Process-wide default search options."""

from __future__ import annotations

import copy

from .model import SearchOptions

_DEFAULT_SEARCH_OPTIONS = SearchOptions()


def get_default_search_options() -> SearchOptions:
    return copy.deepcopy(_DEFAULT_SEARCH_OPTIONS)


def set_default_search_options(options: SearchOptions) -> None:
    global _DEFAULT_SEARCH_OPTIONS
    options.validate()
    _DEFAULT_SEARCH_OPTIONS = copy.deepcopy(options)
