"""Application state and actions."""
from __future__ import annotations
from typing import NamedTuple, Union


class AppState(NamedTuple):
    """The application's state.

    States are immutable; reducers return a new state via ``_replace``.
    """

    counter: int = 0


class IncreaseCounter(NamedTuple):
    """Action to increase the counter."""

    by_count: int


class DecreaseCounter(NamedTuple):
    """Action to decrease the counter."""

    by_count: int


Action = Union[IncreaseCounter, DecreaseCounter]
