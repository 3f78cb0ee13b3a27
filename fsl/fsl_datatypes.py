"""
Defines the core data types for the FSL runtime.

This module provides the error hierarchy, the Environment scope chain,
the argument variants, commands, the function variants and the parsed
Script unit that the evaluator works with.
"""

import math
from decimal import Decimal
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from fsl.fsl_interpreter import Evaluator

# The value a Param/Ref argument resolves to when its name is unbound.
UNDEFINED = "undefined"

INIT_FUNCTION = "init"

# The closed set of built-in behaviours.
PRIMITIVE_NAMES = ("create", "delete", "update", "print", "add", "sub", "mul", "div")


# =================================================================
# Errors
# =================================================================

class FslError(Exception):
    """Base class for every failure raised while loading or running a script.

    Each layer that lets an error pass adds its own context with `annotate`
    and re-raises the same object, so the kind of the error never changes
    while its message grows outward: the outermost context comes first.
    """
    kind = "FslError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.trail: List[str] = []

    def annotate(self, context: str) -> 'FslError':
        self.trail.insert(0, context)
        return self

    def __str__(self) -> str:
        return ": ".join(self.trail + [self.message])


class ScriptIOError(FslError):
    kind = "IOError"


class ScriptSyntaxError(FslError):
    kind = "SyntaxError"


class ScriptStructureError(FslError):
    kind = "ScriptStructureError"


class UndefinedFunction(FslError):
    kind = "UndefinedFunction"


class MissingArgument(FslError):
    kind = "MissingArgument"


class NumericConversionError(FslError):
    kind = "NumericConversionError"


class UndefinedVariableOperation(FslError):
    kind = "UndefinedVariableOperation"


# =================================================================
# Numeric strings
# =================================================================

def parse_float(text: str) -> Optional[float]:
    """Returns the float a numeric string denotes, or None.

    Python's float() is more lenient than the numeric-string convention:
    surrounding whitespace and digit-group underscores are rejected here.
    """
    if not isinstance(text, str) or not text or text != text.strip() or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def format_float(number: float, spec: str) -> str:
    """`format(number, spec)`, with non-finite values spelled +Inf, -Inf and NaN."""
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "+Inf" if number > 0 else "-Inf"
    return format(number, spec)


def format_number(value) -> str:
    """Shortest text form of a number.

    Positional notation for decimal exponents in [-4, 6), otherwise
    `d.ddde±XX` with at least two exponent digits (1e+06, 1.5e-07).
    """
    number = float(value)
    if not math.isfinite(number):
        return format_float(number, "")
    sign, digits, exponent = Decimal(repr(number)).normalize().as_tuple()
    point = len(digits) + exponent - 1
    text = "".join(map(str, digits))
    if point < -4 or point >= 6:
        mantissa = text[0] + ("." + text[1:] if len(text) > 1 else "")
        body = f"{mantissa}e{'-' if point < 0 else '+'}{abs(point):02d}"
    else:
        body = format(Decimal(repr(abs(number))).normalize(), "f")
    return ("-" if sign else "") + body


# =================================================================
# Environment
# =================================================================

class Environment:
    """A frame of variable and function bindings linked to an optional parent.

    Lookups are either frame-local or chain-searched and the caller always
    says which. Writes through `assign_variable` land on the frame that
    already binds the name; a brand-new name is created in the root-most
    frame, not the current one.
    """
    def __init__(self, parent: Optional['Environment'] = None):
        self.parent = parent
        self.variables: Dict[str, str] = {}
        self.functions: Dict[str, 'Function'] = {}

    def chain(self):
        """Yields this frame and then each ancestor up to the root."""
        current = self
        while current is not None:
            yield current
            current = current.parent

    @property
    def root(self) -> 'Environment':
        current = self
        while current.parent is not None:
            current = current.parent
        return current

    @property
    def depth(self) -> int:
        return sum(1 for _ in self.chain()) - 1

    def find_variable_owner(self, name: str) -> Optional['Environment']:
        for frame in self.chain():
            if name in frame.variables:
                return frame
        return None

    def lookup_variable(self, name: str, search_ancestors: bool) -> Optional[str]:
        if not search_ancestors:
            return self.variables.get(name)
        owner = self.find_variable_owner(name)
        if owner is None:
            return None
        return owner.variables[name]

    def assign_variable(self, name: str, value: str):
        owner = self.find_variable_owner(name)
        if owner is None:
            owner = self.root
        owner.variables[name] = value

    def update_variable(self, name: str, value: str) -> bool:
        owner = self.find_variable_owner(name)
        if owner is None:
            return False
        owner.variables[name] = value
        return True

    def delete_variable(self, name: str) -> bool:
        owner = self.find_variable_owner(name)
        if owner is None:
            return False
        del owner.variables[name]
        return True

    def lookup_function(self, name: str, search_ancestors: bool) -> Optional['Function']:
        if not search_ancestors:
            return self.functions.get(name)
        for frame in self.chain():
            if name in frame.functions:
                return frame.functions[name]
        return None

    def define_variable(self, name: str, value: str):
        """Binds in this frame only, overwriting any existing binding."""
        self.variables[name] = value

    def define_function(self, name: str, function: 'Function'):
        self.functions[name] = function

    def flatten(self) -> Dict[str, str]:
        """All variables visible from this frame; inner bindings win."""
        out: Dict[str, str] = {}
        for frame in reversed(list(self.chain())):
            out.update(frame.variables)
        return out

    def __contains__(self, name: str) -> bool:
        return self.find_variable_owner(name) is not None

    def __repr__(self) -> str:
        keys = ', '.join(self.variables.keys())
        parent_id = f", parent=#{id(self.parent)}" if self.parent else ""
        return f"<Environment variables=[{keys}]{parent_id}>"


# =================================================================
# Arguments
# =================================================================

class Argument(ABC):
    """A named value bound to a command, resolved against the caller's frame."""
    sigil = ""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def resolve(self, environment: Environment) -> str:
        ...

    def __eq__(self, other):
        return type(self) is type(other) and vars(self) == vars(other)

    def __hash__(self):
        return hash((type(self).__name__,) + tuple(sorted(vars(self).items())))


class LiteralArg(Argument):
    """An argument without indirection."""
    def __init__(self, name: str, value: str):
        super().__init__(name)
        self.value = value

    def resolve(self, environment: Environment) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"{self.name}={self.value!r}"


class ParamArg(Argument):
    """`$name`: must be bound in the caller's own frame."""
    sigil = "$"

    def __init__(self, name: str, ref: str):
        super().__init__(name)
        self.ref = ref

    def resolve(self, environment: Environment) -> str:
        value = environment.lookup_variable(self.ref, search_ancestors=False)
        return UNDEFINED if value is None else value

    def __repr__(self) -> str:
        return f"{self.name}={self.sigil}{self.ref}"


class RefArg(ParamArg):
    """`#name`: searched from the caller's frame up to the root."""
    sigil = "#"

    def resolve(self, environment: Environment) -> str:
        value = environment.lookup_variable(self.ref, search_ancestors=True)
        return UNDEFINED if value is None else value


# =================================================================
# Commands and functions
# =================================================================

class Command:
    """One invocation: a target function name plus its argument bindings."""
    def __init__(self, target: str, arguments: Optional[Dict[str, Argument]] = None):
        self.target = target
        self.arguments: Dict[str, Argument] = dict(arguments or {})

    def __repr__(self) -> str:
        args = " ".join(repr(a) for a in self.arguments.values())
        return f"({self.target}{' ' + args if args else ''})"

    def __eq__(self, other):
        return isinstance(other, Command) and self.target == other.target and self.arguments == other.arguments


class Function(ABC):
    """Anything a command can dispatch to."""
    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def evaluate(self, environment: Environment, evaluator: 'Evaluator'):
        ...


class CompositeFunction(Function):
    """A user-defined function: an ordered list of commands."""
    def __init__(self, name: str, commands: List[Command]):
        super().__init__(name)
        self.commands = list(commands)

    def evaluate(self, environment: Environment, evaluator: 'Evaluator'):
        for command in self.commands:
            try:
                evaluator.eval_command(command, environment)
            except FslError as e:
                raise e.annotate(f'failed to execute function "{self.name}"')

    def __repr__(self) -> str:
        return f"<CompositeFunction {self.name} commands={len(self.commands)}>"


class PrimitiveFunction(Function):
    """A built-in with fixed native behaviour, one of PRIMITIVE_NAMES."""
    def __init__(self, name: str, behaviour):
        if name not in PRIMITIVE_NAMES:
            raise ValueError(f"unknown primitive {name!r}")
        super().__init__(name)
        self.behaviour = behaviour

    def evaluate(self, environment: Environment, evaluator: 'Evaluator'):
        self.behaviour(environment)

    def __repr__(self) -> str:
        return f"<PrimitiveFunction {self.name}>"


# =================================================================
# Script
# =================================================================

class Script:
    """The declarations parsed from one input unit."""
    def __init__(self, functions: Dict[str, Function], variables: Dict[str, str], name: str = "<script>"):
        if INIT_FUNCTION not in functions:
            raise ScriptStructureError(f'"{INIT_FUNCTION}" function not found')
        self.functions = functions
        self.variables = variables
        self.name = name

    @property
    def init(self) -> Function:
        return self.functions[INIT_FUNCTION]

    def evaluate(self, environment: Environment, evaluator: 'Evaluator'):
        """Layers the declarations onto `environment`, then runs `init` in it."""
        for name, function in self.functions.items():
            environment.define_function(name, function)
        for name, value in self.variables.items():
            environment.define_variable(name, value)
        evaluator.invoke(self.init, environment)

    def __repr__(self) -> str:
        return f"<Script {self.name} functions={len(self.functions)} variables={len(self.variables)}>"
