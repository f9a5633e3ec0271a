"""Oneway reducers."""
from __future__ import annotations
import functools
from typing import Any, Callable, Generic, List, Optional, Tuple, TypeVar

from .state import AppState, DecreaseCounter, IncreaseCounter

ActionT = TypeVar("ActionT")
StateT = TypeVar("StateT")
ReducerFuncT = Callable[[ActionT, StateT], StateT]


class Reducer(Generic[StateT, ActionT]):
    """A pure state transition.

    Reducers are compared by identity, so two instances with the same logic
    are separate registrations in an :class:`AppReducer`.
    """

    def reduce(self, action: ActionT, state: Optional[StateT]) -> StateT:
        raise NotImplementedError


class CountReducer(Reducer[AppState, Any]):
    """Reduce counter actions; pass every other action through."""

    def reduce(self, action: Any, state: Optional[AppState]) -> AppState:
        if state is None:
            state = AppState()

        if isinstance(action, IncreaseCounter):
            return state._replace(counter=state.counter + action.by_count)

        if isinstance(action, DecreaseCounter):
            return state._replace(counter=state.counter - action.by_count)

        return state


class _FunctionReducer(Reducer[StateT, ActionT]):
    def __init__(
        self,
        func: ReducerFuncT[ActionT, StateT],
        action_type: Any,
        state_factory: Callable[[], StateT],
    ) -> None:
        self._func = func
        self._action_type = action_type
        self._state_factory = state_factory
        functools.update_wrapper(self, func)

    def reduce(self, action: ActionT, state: Optional[StateT]) -> StateT:
        if state is None:
            state = self._state_factory()

        if not isinstance(action, self._action_type):
            return state

        return self._func(action, state)

    def __repr__(self) -> str:
        return f"<reducer {self._func.__qualname__}>"


def reducer(
    action_type: Any,
    state_factory: Callable[[], Any] = AppState,
) -> Callable[[ReducerFuncT[ActionT, StateT]], Reducer[StateT, ActionT]]:
    """Turn a plain function into a reducer for a given action type.

    Args:
        action_type: An action class, or a tuple of action classes, that the
            function handles. Any other action leaves the state unchanged.
        state_factory: Factory for the default state, used when the reducer
            is handed no state.

    Example:
        ```python
        @reducer(IncreaseCounter)
        def double_increase(action: IncreaseCounter, state: AppState) -> AppState:
            return state._replace(counter=state.counter + 2 * action.by_count)

        store.reducer.add(double_increase)
        ```
    """

    def _decorator(func: ReducerFuncT[ActionT, StateT]) -> Reducer[StateT, ActionT]:
        return _FunctionReducer(func, action_type, state_factory)

    return _decorator


class AppReducer(Generic[StateT, ActionT]):
    """An ordered chain of reducers, folded into one.

    Args:
        state_factory: Factory for the state used when none is given.
    """

    def __init__(self, state_factory: Callable[[], StateT] = AppState) -> None:  # type: ignore[assignment]
        self._state_factory = state_factory
        self._reducers: List[Reducer[StateT, ActionT]] = []

    @property
    def reducers(self) -> Tuple[Reducer[StateT, ActionT], ...]:
        """Registered reducers, in execution order."""
        return tuple(self._reducers)

    def add(self, reducer: Reducer[StateT, ActionT]) -> None:
        """Append a reducer to the end of the chain."""
        self._reducers.append(reducer)

    def remove(self, reducer: Reducer[StateT, ActionT]) -> None:
        """Remove a reducer by identity, if it is registered."""
        for index, registered in enumerate(self._reducers):
            if registered is reducer:
                del self._reducers[index]
                return

    def main_reducer(self, action: ActionT, state: Optional[StateT] = None) -> StateT:
        """Run every reducer in order, each one seeing the previous one's state."""
        initial_state = state if state is not None else self._state_factory()

        return functools.reduce(
            lambda working_state, next_reducer: next_reducer.reduce(action, working_state),
            self._reducers,
            initial_state,
        )
