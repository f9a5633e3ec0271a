"""Oneway stores."""
from __future__ import annotations
import collections
import contextlib
import enum
import logging
import weakref
from anyio import Event
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Deque,
    Dict,
    Generator,
    Generic,
    List,
    Optional,
    Protocol,
    Sequence,
    TypeVar,
    runtime_checkable,
)

from .async_action import AsyncActionCreator, PendingAction
from .errors import InvalidSubscriberError
from .reducer import AppReducer
from .state import AppState

ActionT = TypeVar("ActionT")
StateT = TypeVar("StateT")
StateT_contra = TypeVar("StateT_contra", contravariant=True)

Middleware = Callable[[ActionT, StateT, StateT], None]

log = logging.getLogger(__name__)


@runtime_checkable
class StoreSubscriber(Protocol[StateT_contra]):
    """Anything that wants to be pushed the store's state."""

    def new_state(self, state: StateT_contra) -> None:
        ...


class SubscriptionStrategy(str, enum.Enum):
    """Message strategy to use for a subscription.

    Props:
        LATEST: Only the newest undelivered state is kept. Intermediate
            states pushed while the consumer is busy are dropped.
        EVERY: Every pushed state is queued and delivered in order, so the
            store may already hold a newer state when one is handled.
    """

    LATEST = "latest"
    EVERY = "every"


class Subscription(AsyncIterator[StateT]):
    """An asynchronous iterator of states pushed by a store."""

    def __init__(self, strategy: SubscriptionStrategy) -> None:
        self._strategy = strategy
        self._notification_event = Event()
        self._queue: Deque[StateT] = collections.deque(
            maxlen=1 if strategy == SubscriptionStrategy.LATEST else None
        )

    def new_state(self, state: StateT) -> None:
        self._queue.append(state)
        self._notification_event.set()

    async def __anext__(self) -> StateT:
        while len(self._queue) == 0:
            await self._notification_event.wait()
            self._notification_event = Event()

        return self._queue.popleft()

    def __aiter__(self) -> AsyncIterator[StateT]:
        return self


def _check_subscriber(subscriber: object) -> None:
    if not isinstance(subscriber, StoreSubscriber):
        raise InvalidSubscriberError(
            f"{subscriber!r} does not implement new_state(state)"
        )


class Store(Generic[StateT, ActionT]):
    """A state store.

    Args:
        initial_state: Initial state to use in the store. Defaults to a
            fresh state from ``state_factory``.
        state_factory: Factory for the default state.
        middleware: Callables run with ``(action, previous_state, next_state)``
            after the reducers and before the new state is broadcast. A
            middleware that raises aborts the dispatch.
    """

    state: StateT
    reducer: AppReducer[StateT, ActionT]

    def __init__(
        self,
        initial_state: Optional[StateT] = None,
        *,
        state_factory: Callable[[], StateT] = AppState,  # type: ignore[assignment]
        middleware: Sequence[Middleware[ActionT, StateT]] = (),
    ) -> None:
        self.reducer = AppReducer(state_factory)
        self._middleware: List[Middleware[ActionT, StateT]] = list(middleware)
        self._subscribers: weakref.WeakValueDictionary[
            int, StoreSubscriber[StateT]
        ] = weakref.WeakValueDictionary()
        self._pinned_subscribers: Dict[int, StoreSubscriber[StateT]] = {}
        self._queued_actions: Deque[ActionT] = collections.deque()
        self._notifying = False
        self._set_state(initial_state if initial_state is not None else state_factory())

    @property
    def subscribers(self) -> List[StoreSubscriber[StateT]]:
        """Subscribers that are registered and still alive."""
        return list(self._subscribers.values()) + list(self._pinned_subscribers.values())

    def dispatch(self, action: ActionT) -> StateT:
        """Dispatch an action into the store.

        An action dispatched by a subscriber while the store is notifying is
        queued, and applied once every subscriber has received the current
        state. In that case the current state is returned.
        """
        if self._notifying:
            log.debug("Queued %r until the current broadcast finishes", action)
            self._queued_actions.append(action)
            return self.state

        next_state = self._commit(action)
        self._notifying = True

        try:
            self._notify(next_state)

            while self._queued_actions:
                next_state = self._commit(self._queued_actions.popleft())
                self._notify(next_state)
        finally:
            self._notifying = False
            self._queued_actions.clear()

        return next_state

    def dispatch_async(
        self,
        action_creator: AsyncActionCreator[StateT, ActionT],
    ) -> PendingAction[StateT, ActionT]:
        """Dispatch an async action creator into the store.

        The creator is called with the current state and a completion
        callback. Once its effect is done, it calls the completion callback
        with an action creator, which is evaluated against the store's state
        at that time. If it returns an action, the action is dispatched.

        Returns:
            A handle to the pending action.
        """
        pending: PendingAction[StateT, ActionT] = PendingAction(self)
        log.debug("Starting async action %r", action_creator)
        action_creator(self.state, pending.resolve)

        return pending

    def subscribe(self, subscriber: StoreSubscriber[StateT]) -> None:
        """Push every state to a subscriber, starting with the current one.

        The store only keeps a weak reference to the subscriber. Objects that
        cannot be weakly referenced (such as ``__slots__`` classes without
        ``__weakref__``) are held until they are unsubscribed. Subscribing an
        already subscribed object does not register it twice.
        """
        _check_subscriber(subscriber)
        key = id(subscriber)

        if key not in self._pinned_subscribers:
            try:
                self._subscribers[key] = subscriber
            except TypeError:
                self._pinned_subscribers[key] = subscriber
                log.debug(
                    "%s does not support weak references; held until unsubscribed",
                    type(subscriber).__name__,
                )

        log.debug("Subscribed %s", type(subscriber).__name__)
        subscriber.new_state(self.state)

    def unsubscribe(self, subscriber: StoreSubscriber[StateT]) -> None:
        """Stop pushing states to a subscriber."""
        key = id(subscriber)

        for registry in (self._subscribers, self._pinned_subscribers):
            if registry.get(key) is subscriber:
                del registry[key]
                log.debug("Unsubscribed %s", type(subscriber).__name__)

    @contextlib.contextmanager
    def subscription(
        self,
        strategy: SubscriptionStrategy = SubscriptionStrategy.LATEST,
    ) -> Generator[Subscription[StateT], None, None]:
        """Create a subscription to receive states as an async iterator.

        Args:
            strategy: whether to receive the latest state change (default)
                or every state change.

        Returns:
            A context manager wrapping a subscription.
        """
        sub: Subscription[StateT] = Subscription(strategy=strategy)
        self.subscribe(sub)
        try:
            yield sub
        finally:
            self.unsubscribe(sub)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "state":
            raise TypeError("Cannot overwrite state attribute.")
        super().__setattr__(name, value)

    def _set_state(self, value: StateT) -> None:
        super().__setattr__("state", value)

    def _commit(self, action: ActionT) -> StateT:
        previous_state = self.state
        next_state = self.reducer.main_reducer(action, previous_state)

        for middleware in self._middleware:
            middleware(action, previous_state, next_state)

        log.debug("Dispatched %r: %r -> %r", action, previous_state, next_state)
        self._set_state(next_state)

        return next_state

    def _notify(self, state: StateT) -> None:
        for subscriber in self.subscribers:
            _check_subscriber(subscriber)
            subscriber.new_state(state)
