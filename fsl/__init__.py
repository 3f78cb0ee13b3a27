from fsl.fsl_datatypes import (
    Environment, Script, Command, CompositeFunction, PrimitiveFunction,
    FslError, ScriptIOError, ScriptSyntaxError, ScriptStructureError,
    UndefinedFunction, MissingArgument, NumericConversionError, UndefinedVariableOperation,
)
from fsl.fsl_runtime import ExecutionResult, ScriptRunner, StdLib
