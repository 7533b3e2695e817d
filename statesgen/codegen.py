"""Generates server code, a Python wrapper and type stubs from a state tree."""

from __future__ import annotations

import os
from collections import deque
from collections.abc import Iterable, Sequence

from statesgen.collector import Entry, State, parse_states
from statesgen.schema import (
    ArrayType,
    BasicType,
    DictEntry,
    EnumType,
    GraphsEntry,
    ImageEntry,
    InitArray,
    InitOption,
    InitScalar,
    InitStruct,
    InitTuple,
    InitValue,
    ListEntry,
    OptionType,
    SignalEntry,
    StaticEntry,
    StructType,
    SubStateEntry,
    TupleType,
    TypeInfo,
    ValueEntry,
)

EnumMap = dict[str, tuple[tuple[str, int], ...]]
StructMap = dict[str, tuple[tuple[str, TypeInfo], ...]]

_PY_BASIC = {
    "String": "str",
    "bool": "bool",
    "u8": "int",
    "u16": "int",
    "u32": "int",
    "u64": "int",
    "i8": "int",
    "i16": "int",
    "i32": "int",
    "i64": "int",
    "f32": "float",
    "f64": "float",
    "()": "",
}


# type and value text -------------------------------------------------------


def type_info_to_type_string(info: TypeInfo) -> str:
    """Return the server-side type name of ``info``."""
    match info:
        case BasicType(name):
            return name
        case TupleType(elements):
            return "(" + ", ".join(type_info_to_type_string(e) for e in elements) + ")"
        case ArrayType(element, size):
            return f"[{type_info_to_type_string(element)}; {size}]"
        case OptionType(element):
            return f"Option<{type_info_to_type_string(element)}>"
        case StructType(name, _) | EnumType(name, _):
            return name
    raise TypeError(f"not a type description: {info!r}")


def init_to_string(init: InitValue) -> str:
    """Return the server-side literal text of an initial value."""
    match init:
        case InitScalar(text):
            return text
        case InitOption(inner):
            return "None" if inner is None else f"Some({init_to_string(inner)})"
        case InitStruct(name, fields):
            body = ", ".join(f"{n}: {init_to_string(v)}" for n, v in fields)
            return f"{name} {{ {body} }}"
        case InitTuple(elements):
            return "(" + ", ".join(init_to_string(e) for e in elements) + ")"
        case InitArray(elements):
            return "[" + ", ".join(init_to_string(e) for e in elements) + "]"
    raise TypeError(f"not an initial value: {init!r}")


def type_info_to_python_type(
    info: TypeInfo, import_name: str | None = None, list_comment: bool = False
) -> str:
    """Return the Python annotation for ``info``, optionally prefixing named types."""
    match info:
        case BasicType(name):
            try:
                return _PY_BASIC[name]
            except KeyError:
                raise ValueError(f"unsupported basic type: {name}") from None
        case TupleType(elements):
            inner = ", ".join(
                type_info_to_python_type(e, import_name, list_comment) for e in elements
            )
            return f"tuple[{inner}]"
        case ArrayType(element, size):
            elem = type_info_to_python_type(element, import_name, list_comment)
            if list_comment:
                return f"list[{elem}]  # size: {size}"
            return f"list[{elem}]"
        case OptionType(element):
            return f"{type_info_to_python_type(element, import_name, list_comment)} | None"
        case StructType(name, _) | EnumType(name, _):
            return name if import_name is None else f"{import_name}.{name}"
    raise TypeError(f"not a type description: {info!r}")


# collecting named types ----------------------------------------------------


def collect_enums(info: TypeInfo, enums: EnumMap) -> None:
    """Add every enum reachable from ``info`` to ``enums``."""
    match info:
        case EnumType(name, variants):
            if name in enums and enums[name] != variants:
                raise ValueError(f"Enum {name} defined multiple times with different variants")
            enums[name] = variants
        case StructType(_, fields):
            for _, field_type in fields:
                collect_enums(field_type, enums)
        case TupleType(elements):
            for element in elements:
                collect_enums(element, enums)
        case ArrayType(element, _) | OptionType(element):
            collect_enums(element, enums)


def collect_structs(info: TypeInfo, structs: StructMap) -> None:
    """Add every struct reachable from ``info`` to ``structs``."""
    match info:
        case StructType(name, fields):
            if name in structs and structs[name] != fields:
                raise ValueError(f"Struct {name} defined multiple times with different fields")
            structs[name] = fields
            for _, field_type in fields:
                collect_structs(field_type, structs)
        case TupleType(elements):
            for element in elements:
                collect_structs(element, structs)
        case ArrayType(element, _) | OptionType(element):
            collect_structs(element, structs)


def get_all_enums_structs(values: Iterable[Entry]) -> tuple[EnumMap, StructMap]:
    """Return all enums and structs used by ``values``, each sorted by name."""
    enums: EnumMap = {}
    structs: StructMap = {}
    for value in values:
        match value:
            case ValueEntry(info=info) | StaticEntry(info=info):
                infos: Sequence[TypeInfo] = (info,)
            case DictEntry(key_info=key_info, value_info=value_info):
                infos = (key_info, value_info)
            case ListEntry(info=info) | SignalEntry(info=info):
                infos = (info,)
            case _:
                continue
        for info in infos:
            collect_enums(info, enums)
        for info in infos:
            collect_structs(info, structs)
    return dict(sorted(enums.items())), dict(sorted(structs.items()))


def _flatten(states: list[tuple[str, list[Entry]]]) -> list[Entry]:
    return [entry for _, entries in states for entry in entries]


def _write(path: str | os.PathLike[str], text: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as file:
        file.write(text)


# server code ---------------------------------------------------------------


def _server_line(entry: Entry) -> str | None:
    match entry:
        case ValueEntry(_, id_, info, init):
            return f"c.add_value::<{type_info_to_type_string(info)}>({id_}, {init_to_string(init)});"
        case StaticEntry(_, id_, info, init):
            return f"c.add_static::<{type_info_to_type_string(info)}>({id_}, {init_to_string(init)});"
        case ImageEntry(_, id_):
            return f"c.add_image({id_});"
        case DictEntry(_, id_, key_info, value_info):
            key = type_info_to_type_string(key_info)
            val = type_info_to_type_string(value_info)
            return f"c.add_dict::<{key}, {val}>({id_});"
        case ListEntry(_, id_, info):
            return f"c.add_list::<{type_info_to_type_string(info)}>({id_});"
        case GraphsEntry(_, id_, info):
            return f"c.add_graphs::<{type_info_to_type_string(info)}>({id_});"
        case SignalEntry(_, id_, info):
            return f"c.add_signal::<{type_info_to_type_string(info)}>({id_});"
    return None


def render_rust_server(state: type[State]) -> str:
    """Return the server-side source that registers every value of ``state``."""
    values = _flatten(parse_states(state))
    lines = [line for line in map(_server_line, values) if line is not None]
    enums, structs = get_all_enums_structs(values)
    has_types = bool(enums or structs)

    out = ["// Generated by build_scripts.rs, do not edit\n"]
    if has_types:
        out.append("\nuse egui_states_pyserver::pyo3::prelude::*;\n")
    out.append("use egui_states_pyserver::ServerValuesCreator;\n")
    if enums:
        out.append("use egui_states_pyserver::pyenum;\n")
    if structs:
        out.append("use egui_states_pyserver::pystruct;\n")
    out.append("\n")
    out.append("pub(crate) fn create_states(c: &mut ServerValuesCreator) {\n")
    out.extend(f"    {line}\n" for line in lines)
    out.append("}\n")

    if has_types:
        out.append("\npub(crate) fn register_types(m: &Bound<PyModule>) -> PyResult<()> {\n")
        out.extend(f"    m.add_class::<{name}>()?;\n" for name in enums)
        out.extend(f"    m.add_class::<{name}>()?;\n" for name in structs)
        out.append("    Ok(())\n")
        out.append("}\n\n")

    for enum_name, variants in enums.items():
        out.append("#[pyenum]\n")
        out.append(f"enum {enum_name} ")
        out.append("{\n")
        out.extend(f"    {name} = {value},\n" for name, value in variants)
        out.append("}\n\n")

    for struct_name, fields in structs.items():
        out.append("#[pystruct]\n")
        out.append(f"struct {struct_name} {{\n")
        out.extend(f"    pub {name}: {type_info_to_type_string(typ)},\n" for name, typ in fields)
        out.append("}\n\n")

    return "".join(out)


def generate_rust_server(state: type[State], path: str | os.PathLike[str]) -> None:
    """Write the server-side registration source for ``state`` to ``path``."""
    _write(path, render_rust_server(state))


# Python wrapper ------------------------------------------------------------


def _wrapper_line(entry: Entry, import_name: str | None) -> str:
    def py(info: TypeInfo) -> str:
        return type_info_to_python_type(info, import_name, False)

    match entry:
        case ValueEntry(name=name, info=info):
            return f"        self.{name}: sc.Value[{py(info)}] = sc.Value(c)\n"
        case StaticEntry(name=name, info=info):
            return f"        self.{name}: sc.ValueStatic[{py(info)}] = sc.ValueStatic(c)\n"
        case ImageEntry(name=name):
            return f"        self.{name}: sc.ValueImage = sc.ValueImage(c)\n"
        case DictEntry(name=name, key_info=key_info, value_info=value_info):
            return (
                f"        self.{name}: sc.ValueDict[{py(key_info)}, {py(value_info)}]"
                " = sc.ValueDict(c)\n"
            )
        case ListEntry(name=name, info=info):
            return f"        self.{name}: sc.ValueList[{py(info)}] = sc.ValueList(c)\n"
        case GraphsEntry(name=name):
            return f"        self.{name}: sc.ValueGraphs = sc.ValueGraphs(c)\n"
        case SignalEntry(name=name, info=info):
            py_type = py(info)
            if not py_type:
                return f"        self.{name}: sc.SignalEmpty = sc.SignalEmpty(c)\n"
            return f"        self.{name}: sc.Signal[{py_type}] = sc.Signal(c)\n"
        case SubStateEntry(name, substate):
            return f"        self.{name}: {substate} = {substate}(c)\n"
    raise TypeError(f"not a value entry: {entry!r}")


def render_python_wrapper(
    state: type[State], import_: tuple[str, str] | None = None
) -> str:
    """Return Python classes mirroring ``state``; ``import_`` is (module, name) for types."""
    states = parse_states(state)
    root = states[-1][0]
    import_name = import_[1] if import_ is not None else None

    out = [
        "# Generated by build_scripts.rs, do not edit\n",
        "# ruff: noqa: D107 D101\n",
        "from collections.abc import Callable\n\n",
        "from egui_states import structures as sc\n",
    ]
    if import_ is not None:
        out.append(f"from {import_[0]} import {import_[1]}\n")

    used: set[str] = set()
    for class_name, values in states:
        if class_name in used:
            continue
        used.add(class_name)

        if class_name == root:
            out.append(f"\n\nclass {class_name}(sc._MainStatesBase):\n")
            out.append("    def __init__(self, update: Callable[[float | None], None]):\n")
            out.append("        self._update = update\n")
            out.append("        c = sc._Counter()\n\n")
        else:
            out.append(f"\n\nclass {class_name}(sc._StatesBase):\n")
            out.append("    def __init__(self, c: sc._Counter):\n")

        if not values:
            out.append("    pass\n")
            continue
        out.extend(_wrapper_line(value, import_name) for value in values)

        if class_name == root:
            out.append("\n    def update(self, duration: float | None = None) -> None:\n")
            out.append('        """Update the UI.\n\n')
            out.append("        Args:\n")
            out.append("            duration (float | None): The duration of the update.\n")
            out.append('        """\n')
            out.append("        self._update(duration)\n")

    return "".join(out)


def generate_python_wrapper(
    state: type[State],
    path: str | os.PathLike[str],
    import_: tuple[str, str] | None = None,
) -> None:
    """Write the Python wrapper for ``state`` to ``path``."""
    _write(path, render_python_wrapper(state, import_))


# type stubs ----------------------------------------------------------------


def _order_structs(fields: Iterable[tuple[str, TypeInfo]], order: deque[str]) -> None:
    for _, field_type in fields:
        if isinstance(field_type, StructType) and field_type.name not in order:
            order.appendleft(field_type.name)
            _order_structs(field_type.fields, order)


def render_pytypes(state: type[State]) -> str:
    """Return a type stub declaring the enums and structs used by ``state``."""
    enums, structs = get_all_enums_structs(_flatten(parse_states(state)))
    order: deque[str] = deque()
    for struct_name, fields in structs.items():
        if struct_name not in order:
            order.appendleft(struct_name)
            _order_structs(fields, order)

    out = [
        "# Generated by build.rs, do not edit\n",
        "from egui_states.typing import SteteServerCoreBase",
        ", PySyncEnum\n\n" if enums else "\n\n",
        "class StatesServerCore(SteteServerCoreBase):\n",
        "    pass\n",
    ]

    for enum_name, variants in enums.items():
        out.append(f"\nclass {enum_name}(PySyncEnum):\n")
        out.extend(f"    {name} = {value}\n" for name, value in variants)

    if structs:
        out.append("\n# Structs -------------------------------------------------")

    for struct_name in order:
        fields = structs[struct_name]
        out.append(f"\nclass {struct_name}:\n")
        if not fields:
            out.append("    pass\n")
            continue
        out.extend(
            f"    {name}: {type_info_to_python_type(typ, None, True)}\n" for name, typ in fields
        )
        params = ", ".join(
            f"{name}: {type_info_to_python_type(typ, None, False)}" for name, typ in fields
        )
        out.append("\n    def __init__(self,")
        out.append(f"{params}) -> None:\n")
        out.append("        pass\n")

    out.append("\n__all__ = [\n")
    out.extend(f'    "{name}",\n' for name in enums)
    out.extend(f'    "{name}",\n' for name in structs)
    out.append("]\n")
    return "".join(out)


def generate_pytypes(state: type[State], path: str | os.PathLike[str]) -> None:
    """Write the type stub for ``state`` to ``path``."""
    _write(path, render_pytypes(state))