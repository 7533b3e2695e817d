# statesgen

You describe the state shared between a UI client and a server once, in Python. statesgen then
writes the three generated sources that both sides need:

* the server-side registration code (`generate_rust_server`),
* a Python wrapper class tree with typed attributes (`generate_python_wrapper`),
* a `.pyi` stub that declares the enums and structs the state uses (`generate_pytypes`).

## Installation

```
pip install statesgen
```

## Describing a state

A state is a subclass of `statesgen.collector.State`. It sets the class attribute `NAME`, and its
constructor takes a creator and declares every value on it. Each value's type is described with
the classes in `statesgen.schema`: `BasicType`, `TupleType`, `ArrayType`, `OptionType`,
`StructType` and `EnumType`.

```python
from statesgen.collector import State
from statesgen.schema import BasicType


class States(State):
    NAME = "States"

    def __init__(self, c):
        self.value = c.add_value(self.NAME, "value", BasicType("f32"), 0.0)
        self.image = c.add_image(self.NAME, "image")
        self.graphs = c.add_graphs(self.NAME, "graphs", BasicType("f32"))
```

The creator (`ParseValuesCreator`) provides these methods:

* `add_value` declares a two-way value.
* `add_static` declares a value that only the server sets.
* `add_image` declares an image.
* `add_signal` declares a signal sent from the client.
* `add_dict` declares a dictionary.
* `add_list` declares a list.
* `add_graphs` declares a collection of graphs.
* `add_substate` declares a nested state and builds it.

Ids start at 10 and follow the order of declaration. `add_value` and `add_static` check the
initial value against its type with `schema.init_value`. A value of the wrong kind raises
`TypeError`. A value out of range or of the wrong length raises `ValueError`.

`parse_states(States)` returns a list of `(state name, entries)` pairs. Substates come first and
the root state comes last. A substate that is already being built raises `RuntimeError`.

## Generating code

```python
from statesgen.codegen import generate_pytypes, generate_python_wrapper, generate_rust_server

generate_rust_server(States, "src/states.rs")
generate_python_wrapper(States, "states_server/states.py")
generate_pytypes(States, "states_server/core.pyi")
```

`generate_python_wrapper` takes an optional `import_=(module, name)`. When it is given, the
wrapper imports `name` from `module` and prefixes enum and struct annotations with `name.`.

Each `generate_*` function has a `render_*` counterpart that returns the text instead of writing
a file. The lower-level helpers are public too:

* `type_info_to_type_string`
* `init_to_string`
* `type_info_to_python_type`
* `collect_enums`
* `collect_structs`
* `get_all_enums_structs`

An enum or struct name used twice with different contents raises `ValueError`.

## What this package does not do

statesgen only generates sources. It has no command-line tool, so you call it from your own build
script. It has no client runtime: it does not open connections, apply update messages or hold
values.