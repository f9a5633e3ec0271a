"""Oneway - unidirectional state management for Python."""
from .async_action import (
    ActionCreator,
    AsyncActionCreator,
    AsyncActionStatus,
    DataApi,
    PendingAction,
    StaticDataApi,
    dispatch_blocking,
    fetch_data_action,
)
from .errors import ActionResolvedError, InvalidSubscriberError, StoreError
from .reducer import AppReducer, CountReducer, Reducer, reducer
from .state import Action, AppState, DecreaseCounter, IncreaseCounter
from .store import (
    Middleware,
    Store,
    StoreSubscriber,
    Subscription,
    SubscriptionStrategy,
)

__all__ = [
    "Action",
    "ActionCreator",
    "ActionResolvedError",
    "AppReducer",
    "AppState",
    "AsyncActionCreator",
    "AsyncActionStatus",
    "CountReducer",
    "DataApi",
    "DecreaseCounter",
    "IncreaseCounter",
    "InvalidSubscriberError",
    "Middleware",
    "PendingAction",
    "Reducer",
    "StaticDataApi",
    "Store",
    "StoreError",
    "StoreSubscriber",
    "Subscription",
    "SubscriptionStrategy",
    "dispatch_blocking",
    "fetch_data_action",
    "reducer",
]
