"""
Transforms a decoded script document into a Script of fsl_datatypes.
"""

from typing import Any, Dict, Optional

from fsl.fsl_datatypes import (
    Argument, LiteralArg, ParamArg, RefArg,
    Command, CompositeFunction, Function, Script,
    ScriptStructureError, ScriptSyntaxError, format_number, parse_float,
)

COMMAND_KEY = "cmd"


def parse_argument(name: str, raw: str) -> Argument:
    """Chooses the argument variant from the first character of `raw`."""
    match raw[:1]:
        case "$":
            return ParamArg(name, raw[1:])
        case "#":
            return RefArg(name, raw[1:])
        case _:
            return LiteralArg(name, raw)


def _number_text(value) -> str:
    try:
        return format_number(value)
    except OverflowError:
        raise ScriptSyntaxError("integer literal out of float64 range") from None


def stringify_scalar(value: Any) -> str:
    """Text form of a decoded scalar; containers are rejected."""
    match value:
        case bool():
            return "true" if value else "false"
        case None:
            return "null"
        case int() | float():
            return _number_text(value)
        case str():
            return value
    raise ScriptStructureError(f"expected a scalar value, got {type(value).__name__}: {value!r}")


class ScriptTransformer:
    def __init__(self, builtins: Optional[Dict[str, Function]] = None, debug=None):
        self.builtins: Dict[str, Function] = dict(builtins or {})
        self._dbg = debug or (lambda *parts: None)

    def transform(self, document: Any, name: str = "<script>") -> Script:
        if not isinstance(document, dict):
            raise ScriptStructureError(
                f"cannot parse script: expected an object at top level, got {type(document).__name__}"
            )

        functions: Dict[str, Function] = dict(self.builtins)
        variables: Dict[str, str] = {}

        for key, value in document.items():
            key = str(key)
            match value:
                case list():
                    try:
                        functions[key] = self.transform_function(key, value)
                    except ScriptStructureError as e:
                        raise e.annotate("cannot parse script")
                case bool() | None:
                    self._dbg("ignoring declaration", key, "of type", type(value).__name__)
                case int() | float():
                    variables[key] = _number_text(value)
                case str():
                    if parse_float(value) is None:
                        raise ScriptStructureError(f'variable "{key}" = "{value}" is not a floating-point number')
                    variables[key] = value
                case _:
                    self._dbg("ignoring declaration", key, "of type", type(value).__name__)

        return Script(functions, variables, name=name)

    def transform_function(self, name: str, entries: list) -> CompositeFunction:
        commands = []
        for entry in entries:
            if not isinstance(entry, dict):
                raise ScriptStructureError(f"invalid command: {entry!r}").annotate(f'cannot parse function "{name}"')
            try:
                commands.append(self.transform_command(entry))
            except ScriptStructureError as e:
                raise e.annotate(f'cannot parse function "{name}"')
        return CompositeFunction(name, commands)

    def transform_command(self, entry: Dict[str, Any]) -> Command:
        if COMMAND_KEY not in entry:
            raise ScriptStructureError(f"cannot parse command: '{COMMAND_KEY}' attribute is missing")

        arguments: Dict[str, Argument] = {}
        for key, value in entry.items():
            key = str(key)
            if key == COMMAND_KEY:
                continue
            try:
                arguments[key] = parse_argument(key, stringify_scalar(value))
            except ScriptStructureError as e:
                raise e.annotate(f'cannot parse arg "{key}"')

        target = stringify_scalar(entry[COMMAND_KEY])
        if target.startswith("#"):
            target = target[1:]
        return Command(target, arguments)
