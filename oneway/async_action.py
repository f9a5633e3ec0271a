"""Async action creators.

An async action creator runs an effect (a network call, a timer, ...) and
then hands the store an action creator: a function from the store's state
*at completion time* to an optional action. That lets the effect make its
final decision with fresh state instead of the snapshot it started with.

Completion callbacks must be called on the store's thread. Use
:func:`dispatch_blocking` to run a blocking effect in a worker thread.
"""
from __future__ import annotations
import enum
import logging
from anyio import Event, to_thread
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Generic,
    Optional,
    Protocol,
    TypeVar,
)

from .errors import ActionResolvedError, StoreError
from .state import AppState, IncreaseCounter

if TYPE_CHECKING:
    from .store import Store

ActionT = TypeVar("ActionT")
StateT = TypeVar("StateT")

ActionCreator = Callable[[StateT], Optional[ActionT]]
AsyncActionCreator = Callable[
    [StateT, Callable[[ActionCreator[StateT, ActionT]], None]], None
]
DataCompletion = Callable[[Optional[bytes], Optional[BaseException]], None]

log = logging.getLogger(__name__)


class AsyncActionStatus(str, enum.Enum):
    """Lifecycle of an async action.

    Props:
        PENDING: The creator was called and its effect is in flight.
        RESOLVED: The completion callback was called.
    """

    PENDING = "pending"
    RESOLVED = "resolved"


class PendingAction(Generic[StateT, ActionT]):
    """Handle to an async action dispatched into a store.

    Args:
        store: The store the resolved action is dispatched into.
    """

    def __init__(self, store: Store[StateT, ActionT]) -> None:
        self._store = store
        self._status = AsyncActionStatus.PENDING
        self._action: Optional[ActionT] = None
        self._resolved_event: Optional[Event] = None

    @property
    def status(self) -> AsyncActionStatus:
        return self._status

    @property
    def action(self) -> Optional[ActionT]:
        """The action the async action resolved to, if any."""
        return self._action

    def resolve(self, action_creator: ActionCreator[StateT, ActionT]) -> None:
        """Complete the async action.

        Args:
            action_creator: Called with the store's current state. If it
                returns an action, that action is dispatched.

        Raises:
            ActionResolvedError: the async action was already resolved.
        """
        if self._status == AsyncActionStatus.RESOLVED:
            raise ActionResolvedError("Async action was already resolved")

        self._status = AsyncActionStatus.RESOLVED

        try:
            action = action_creator(self._store.state)
            log.debug("Async action resolved to %r", action)

            if action is not None:
                self._store.dispatch(action)
                self._action = action
        finally:
            if self._resolved_event is not None:
                self._resolved_event.set()

    async def wait(self) -> Optional[ActionT]:
        """Wait for the async action to resolve.

        Returns:
            The dispatched action, or None if no action was dispatched.
        """
        if self._status == AsyncActionStatus.PENDING:
            if self._resolved_event is None:
                self._resolved_event = Event()
            await self._resolved_event.wait()

        return self._action


async def dispatch_blocking(
    store: Store[StateT, ActionT],
    effect: Callable[[StateT], ActionCreator[StateT, ActionT]],
) -> Optional[ActionT]:
    """Run a blocking effect in a worker thread, then dispatch its result.

    The effect is called with the store's state in a worker thread and
    returns an action creator. The action creator is resolved back on the
    calling thread, so the store is only ever mutated from one thread.

    If the effect raises, the async action resolves to no action and the
    error propagates.

    Returns:
        The dispatched action, or None if no action was dispatched.
    """
    completion: Optional[Callable[[ActionCreator[StateT, ActionT]], None]] = None

    def _start(state: StateT, resolve: Callable[[ActionCreator[StateT, ActionT]], None]) -> None:
        nonlocal completion
        completion = resolve

    pending = store.dispatch_async(_start)

    if completion is None:
        raise StoreError("Store did not start the async action")

    resolve = completion

    try:
        action_creator = await to_thread.run_sync(effect, store.state)
    except BaseException:
        resolve(lambda _: None)
        raise

    resolve(action_creator)

    return pending.action


class DataApi(Protocol):
    """A source of data for async action creators."""

    def fetch_data(self, completion: DataCompletion) -> None:
        """Fetch data, then call ``completion(data, error)`` exactly once."""
        ...


class StaticDataApi:
    """Data API that completes immediately with fixed results."""

    def __init__(
        self,
        data: Optional[bytes] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        self._data = data
        self._error = error

    def fetch_data(self, completion: DataCompletion) -> None:
        completion(self._data, self._error)


def fetch_data_action(
    api: DataApi,
    by_count: int = 5,
) -> AsyncActionCreator[AppState, Any]:
    """Create an async action that increases the counter once data arrives.

    If the fetch fails, the error is logged and no action is dispatched.
    """

    def _action_creator(
        state: AppState,
        completion: Callable[[ActionCreator[AppState, Any]], None],
    ) -> None:
        def _on_data(data: Optional[bytes], error: Optional[BaseException]) -> None:
            if error is not None:
                log.warning("Data fetch failed: %s", error)
                completion(lambda _: None)
            else:
                completion(lambda _: IncreaseCounter(by_count=by_count))

        api.fetch_data(_on_data)

    return _action_creator
