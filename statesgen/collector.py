"""Collects the values declared by a state tree."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Union

from statesgen.schema import (
    DictEntry,
    GraphsEntry,
    ImageEntry,
    ListEntry,
    SignalEntry,
    StaticEntry,
    SubStateEntry,
    TypeInfo,
    ValueEntry,
    init_value,
)

Entry = Union[
    ValueEntry,
    StaticEntry,
    ImageEntry,
    DictEntry,
    ListEntry,
    GraphsEntry,
    SignalEntry,
    SubStateEntry,
]

_FIRST_FREE_ID = 10  # ids below this are reserved for special values


class State(ABC):
    """A group of values; subclasses set ``NAME`` and declare values in ``__init__``."""

    NAME: ClassVar[str]

    @abstractmethod
    def __init__(self, c: ParseValuesCreator) -> None:
        """Declare this state's values on ``c``."""


class ParseValuesCreator:
    """Assigns ids to declared values and records them per state."""

    def __init__(self, state: type[State]) -> None:
        self._next_id = _FIRST_FREE_ID
        self._states: list[tuple[str, list[Entry]]] = []
        self._opened: dict[str, list[Entry]] = {state.NAME: []}

    def _new_id(self) -> int:
        new_id = self._next_id
        self._next_id += 1
        return new_id

    def _add(self, state: str, entry: Entry) -> Entry:
        try:
            self._opened[state].append(entry)
        except KeyError:
            raise KeyError(f"state {state!r} is not opened") from None
        return entry

    def add_value(self, state: str, name: str, info: TypeInfo, value: Any) -> ValueEntry:
        """Declare a two-way value with an initial value."""
        init = init_value(value, info)
        return self._add(state, ValueEntry(name, self._new_id(), info, init))

    def add_static(self, state: str, name: str, info: TypeInfo, value: Any) -> StaticEntry:
        """Declare a server-set value with an initial value."""
        init = init_value(value, info)
        return self._add(state, StaticEntry(name, self._new_id(), info, init))

    def add_image(self, state: str, name: str) -> ImageEntry:
        """Declare an image."""
        return self._add(state, ImageEntry(name, self._new_id()))

    def add_signal(self, state: str, name: str, info: TypeInfo) -> SignalEntry:
        """Declare a signal carrying values of type ``info``."""
        return self._add(state, SignalEntry(name, self._new_id(), info))

    def add_dict(
        self, state: str, name: str, key_info: TypeInfo, value_info: TypeInfo
    ) -> DictEntry:
        """Declare a dictionary."""
        return self._add(state, DictEntry(name, self._new_id(), key_info, value_info))

    def add_list(self, state: str, name: str, info: TypeInfo) -> ListEntry:
        """Declare a list."""
        return self._add(state, ListEntry(name, self._new_id(), info))

    def add_graphs(self, state: str, name: str, info: TypeInfo) -> GraphsEntry:
        """Declare a collection of graphs."""
        return self._add(state, GraphsEntry(name, self._new_id(), info))

    def add_substate(self, state: str, name: str, substate: type[State]) -> State:
        """Declare a nested state and build it; returns the built substate."""
        self._add(state, SubStateEntry(name, substate.NAME))
        if substate.NAME in self._opened:
            raise RuntimeError(f"substate {substate.NAME} already opened")
        self._opened[substate.NAME] = []
        instance = substate(self)
        self._states.append((substate.NAME, self._opened.pop(substate.NAME)))
        return instance

    def get_map(self) -> list[tuple[str, list[Entry]]]:
        """Return every state with its entries, substates first and the root last."""
        if len(self._opened) > 1:
            raise RuntimeError("not all substates were closed")
        if not self._opened:
            raise RuntimeError("no main state opened")
        self._states.append(self._opened.popitem())
        return self._states


def parse_states(state: type[State]) -> list[tuple[str, list[Entry]]]:
    """Build ``state`` and return the declared entries of its whole tree."""
    creator = ParseValuesCreator(state)
    state(creator)
    return creator.get_map()