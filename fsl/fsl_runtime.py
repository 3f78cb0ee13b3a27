# fsl_runtime.py

import math
import operator
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional, Sequence

from fsl.fsl_datatypes import (
    Environment, FslError, Function, PrimitiveFunction, PRIMITIVE_NAMES,
    MissingArgument, NumericConversionError, UndefinedVariableOperation,
    format_float, parse_float,
)
from fsl.fsl_file import read_script, script_format
from fsl.fsl_interpreter import Evaluator
from fsl.fsl_serialize import deserialize
from fsl.fsl_transformer import ScriptTransformer

ATTR_ID = "id"
ATTR_VALUE = "value"
ATTR_OPERAND1 = "operand1"
ATTR_OPERAND2 = "operand2"


def _divide(a: float, b: float) -> float:
    # IEEE semantics: a zero divisor yields a signed infinity or nan.
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


# ===================================================================
# 1. Built-in primitives
# ===================================================================

class StdLib:
    """The built-in functions. Every attribute is read frame-local only."""

    def __init__(self, evaluator: Evaluator):
        self.evaluator = evaluator

    def builtins(self) -> Dict[str, Function]:
        return {name: PrimitiveFunction(name, getattr(self, f"_{name}")) for name in PRIMITIVE_NAMES}

    def _require(self, env: Environment, func: str, attr: str) -> str:
        value = env.lookup_variable(attr, search_ancestors=False)
        if value is None:
            raise MissingArgument(f'failed to evaluate function "{func}": missing "{attr}" argument')
        return value

    def _create(self, env: Environment):
        id_ = self._require(env, "create", ATTR_ID)
        value = self._require(env, "create", ATTR_VALUE)
        env.assign_variable(id_, value)

    def _delete(self, env: Environment):
        id_ = self._require(env, "delete", ATTR_ID)
        if not env.delete_variable(id_):
            raise UndefinedVariableOperation(
                f'failed to evaluate function "delete": delete failed, variable "{id_}" is undefined'
            )

    def _update(self, env: Environment):
        id_ = self._require(env, "update", ATTR_ID)
        value = self._require(env, "update", ATTR_VALUE)
        if not env.update_variable(id_, value):
            raise UndefinedVariableOperation(
                f'failed to evaluate function "update": update failed, variable "{id_}" is undefined'
            )

    def _print(self, env: Environment):
        value = self._require(env, "print", ATTR_VALUE)
        number = parse_float(value)
        self.evaluator.emit("stdout", value if number is None else format_float(number, ".4f"))

    def _binop(self, env: Environment, func: str, op: Callable[[float, float], float]):
        id_ = self._require(env, func, ATTR_ID)
        operands = []
        for attr in (ATTR_OPERAND1, ATTR_OPERAND2):
            raw = self._require(env, func, attr)
            number = parse_float(raw)
            if number is None:
                raise NumericConversionError(f'cannot convert "{attr}" = "{raw}" to float')
            operands.append(number)
        result = op(*operands)
        env.assign_variable(id_, format_float(result, "f"))

    def _add(self, env: Environment): self._binop(env, "add", operator.add)
    def _sub(self, env: Environment): self._binop(env, "sub", operator.sub)
    def _mul(self, env: Environment): self._binop(env, "mul", operator.mul)
    def _div(self, env: Environment): self._binop(env, "div", _divide)


# ===================================================================
# 2. Results and the script runner
# ===================================================================

@dataclass
class ExecutionResult:
    """The structured result of a script execution."""
    status: Literal['success', 'error']
    error_message: Optional[str] = None
    error_kind: Optional[str] = None
    source_name: Optional[str] = None
    side_effects: List[Dict] = field(default_factory=list)

    @property
    def output(self) -> List[str]:
        """Messages printed to stdout, in order."""
        return [e.get('message', '') for e in self.side_effects if e.get('topics') == ['stdout']]

    def format_error(self) -> str:
        if self.status != 'error':
            return ""
        return str(self.error_message or "Unknown error")


class ScriptRunner:
    """Parses and executes FSL scripts against one shared root environment."""

    def _format_runtime_error(self, e: Exception) -> str:
        match e:
            case FslError():
                msg = f"{e.kind}: {e}"
            case RecursionError():
                msg = "InternalError: maximum call depth exceeded"
            case _:
                msg = f"InternalError: {e}"
        st = self._format_stacktrace()
        if st:
            msg += "\n" + st
        return msg

    def _format_stacktrace(self) -> str:
        stack = self.evaluator.call_stack
        if not stack:
            return ""
        frames = []
        for frame in stack[-20:]:
            args = " ".join(f"{k}={v!r}" for k, v in (frame.get('args') or {}).items())
            frames.append(f"({frame.get('name') or '<call>'}{' ' + args if args else ''})")
        prefix = "... " if len(stack) > 20 else ""
        return "FSL stacktrace: " + prefix + " ".join(frames)

    def __init__(self, root: Optional[Environment] = None):
        self.root = root if root is not None else Environment()
        self.evaluator = Evaluator()
        self.stdlib = StdLib(self.evaluator)
        self.transformer = ScriptTransformer(self.stdlib.builtins(), debug=self.evaluator._dbg)

    def handle_script(self, source: Any, name: str = "<script>", fmt: Optional[str] = None) -> ExecutionResult:
        """The main entry point to execute one script's source text."""
        self.evaluator.side_effects = []
        self.evaluator.call_stack.clear()
        try:
            document = deserialize(source, fmt=fmt)
            script = self.transformer.transform(document, name=name)
            self.evaluator._dbg("running", name, "functions", len(script.functions), "variables", len(script.variables))
            script.evaluate(self.root, self.evaluator)
        except Exception as e:
            err_msg = self._format_runtime_error(e)
            self.evaluator.side_effects.append({'topics': ['stderr'], 'message': err_msg})
            return ExecutionResult(
                status='error',
                error_message=err_msg,
                error_kind=getattr(e, 'kind', 'InternalError'),
                source_name=name,
                side_effects=self.evaluator.side_effects,
            )
        return ExecutionResult(status='success', source_name=name, side_effects=self.evaluator.side_effects)

    def run_file(self, path: str) -> ExecutionResult:
        """Reads, parses and runs one script file."""
        self.evaluator.call_stack.clear()
        try:
            data = read_script(path)
        except FslError as e:
            err_msg = self._format_runtime_error(e)
            return ExecutionResult(
                status='error',
                error_message=err_msg,
                error_kind=e.kind,
                source_name=path,
                side_effects=[{'topics': ['stderr'], 'message': err_msg}],
            )
        return self.handle_script(data, name=path, fmt=script_format(path))

    def run_files(self, paths: Sequence[str]) -> ExecutionResult:
        """Runs files left to right; the first failure aborts the rest."""
        effects: List[Dict] = []
        for path in paths:
            result = self.run_file(path)
            effects.extend(e for e in result.side_effects if e.get('topics') != ['stderr'])
            if result.status == 'error':
                err_msg = f'aborting execution: failed to run script "{path}": {result.error_message}'
                effects.append({'topics': ['stderr'], 'message': err_msg})
                return ExecutionResult(
                    status='error',
                    error_message=err_msg,
                    error_kind=result.error_kind,
                    source_name=path,
                    side_effects=effects,
                )
        return ExecutionResult(status='success', side_effects=effects)
