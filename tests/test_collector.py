import pytest

from statesgen.collector import ParseValuesCreator, State, parse_states
from statesgen.schema import (
    BasicType,
    DictEntry,
    GraphsEntry,
    ImageEntry,
    ListEntry,
    SignalEntry,
    StaticEntry,
    SubStateEntry,
    ValueEntry,
    init_value,
)

F32 = BasicType("f32")
BOOL = BasicType("bool")
U32 = BasicType("u32")


class Child(State):
    NAME = "Child"

    def __init__(self, c):
        self.enabled = c.add_value(self.NAME, "enabled", BOOL, True)
        self.limit = c.add_static(self.NAME, "limit", U32, 7)


class Root(State):
    NAME = "Root"

    def __init__(self, c):
        self.value = c.add_value(self.NAME, "value", F32, 0.0)
        self.image = c.add_image(self.NAME, "image")
        self.child = c.add_substate(self.NAME, "child", Child)
        self.clicked = c.add_signal(self.NAME, "clicked", BasicType("()"))
        self.table = c.add_dict(self.NAME, "table", BasicType("u16"), BasicType("String"))
        self.items = c.add_list(self.NAME, "items", F32)
        self.graphs = c.add_graphs(self.NAME, "graphs", F32)


class Twice(State):
    NAME = "Twice"

    def __init__(self, c):
        self.a = c.add_substate(self.NAME, "a", Child)
        self.b = c.add_substate(self.NAME, "b", Child)


class Recursive(State):
    NAME = "Recursive"

    def __init__(self, c):
        self.me = c.add_substate(self.NAME, "me", Recursive)


class EarlyMap(State):
    NAME = "EarlyMap"

    def __init__(self, c):
        c.get_map()


class Outer(State):
    NAME = "Outer"

    def __init__(self, c):
        self.inner = c.add_substate(self.NAME, "inner", EarlyMap)


class Stray(State):
    NAME = "Stray"

    def __init__(self, c):
        c.add_image("Elsewhere", "image")


def _ids(state_map):
    return [e.id for _, entries in state_map for e in entries if hasattr(e, "id")]


def test_substates_come_before_root():
    assert [name for name, _ in parse_states(Root)] == ["Child", "Root"]


def test_first_id_is_ten():
    state_map = parse_states(Root)
    assert state_map[-1][1][0].id == 10


def test_ids_are_consecutive_and_unique():
    ids = _ids(parse_states(Root))
    assert sorted(ids) == list(range(10, 10 + len(ids)))


def test_root_entry_kinds_in_declaration_order():
    root_entries = parse_states(Root)[-1][1]
    assert [type(e) for e in root_entries] == [
        ValueEntry,
        ImageEntry,
        SubStateEntry,
        SignalEntry,
        DictEntry,
        ListEntry,
        GraphsEntry,
    ]


def test_substate_entry_names_the_state():
    root_entries = parse_states(Root)[-1][1]
    assert root_entries[2] == SubStateEntry("child", "Child")


def test_value_entry_holds_initial_value():
    entry = parse_states(Root)[-1][1][0]
    assert entry.name == "value"
    assert entry.info == F32
    assert entry.init == init_value(0.0, F32)


def test_child_entries():
    child_entries = dict(parse_states(Root))["Child"]
    assert [type(e) for e in child_entries] == [ValueEntry, StaticEntry]
    assert child_entries[1].init == init_value(7, U32)


def test_built_state_holds_entries():
    creator = ParseValuesCreator(Root)
    root = Root(creator)
    state_map = creator.get_map()
    assert root.value is state_map[-1][1][0]
    assert root.child.enabled.name == "enabled"


def test_same_substate_used_twice():
    state_map = parse_states(Twice)
    assert [name for name, _ in state_map] == ["Child", "Child", "Twice"]
    ids = _ids(state_map)
    assert len(set(ids)) == len(ids)


def test_recursive_substate_rejected():
    with pytest.raises(RuntimeError):
        parse_states(Recursive)


def test_unclosed_substates_rejected():
    with pytest.raises(RuntimeError):
        parse_states(Outer)


def test_get_map_twice_rejected():
    creator = ParseValuesCreator(Child)
    Child(creator)
    creator.get_map()
    with pytest.raises(RuntimeError):
        creator.get_map()


def test_unknown_state_rejected():
    with pytest.raises(KeyError):
        parse_states(Stray)


def test_bad_initial_value_rejected():
    creator = ParseValuesCreator(Child)
    with pytest.raises(TypeError):
        creator.add_value("Child", "flag", BOOL, 1)


def test_state_without_init_cannot_be_built():
    class NoInit(State):
        NAME = "NoInit"

    with pytest.raises(TypeError):
        parse_states(NoInit)