"""Oneway errors."""


class StoreError(Exception):
    pass


class InvalidSubscriberError(StoreError):
    """An object without a ``new_state`` method reached the subscriber set."""


class ActionResolvedError(StoreError):
    """An async action's completion callback was called more than once."""
