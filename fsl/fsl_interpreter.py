"""
The core FSL interpreter: command dispatch and per-invocation frames.
"""
import os
import sys
from typing import Any, Dict, List, Optional

from fsl.fsl_datatypes import Command, Environment, FslError, Function, UndefinedFunction


class Evaluator:
    """The FSL execution engine."""
    def __init__(self):
        self.side_effects: List[Dict[str, Any]] = []
        self.call_stack: List[Dict[str, Any]] = []

    def _push_frame(self, name: str, args: Dict[str, str]):
        self.call_stack.append({
            'name': name,
            'args': dict(args),
        })

    def _pop_frame(self):
        if self.call_stack:
            self.call_stack.pop()

    def _dbg(self, *parts):
        if os.environ.get("FSL_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    def emit(self, topic_or_topics, *message_parts):
        """Records a side-effect event for the host application."""
        topics = topic_or_topics if isinstance(topic_or_topics, list) else [topic_or_topics]
        message = " ".join(map(str, message_parts))
        self.side_effects.append({"topics": topics, "message": message})

    def invoke(self, function: Function, environment: Environment, args: Optional[Dict[str, str]] = None):
        """Runs `function` with `environment` as its frame.

        The call-stack entry is popped only when the call succeeds, so after
        a failure the stack still describes where it happened.
        """
        self._push_frame(function.name, args or {})
        function.evaluate(environment, self)
        self._pop_frame()

    def eval_command(self, command: Command, scope: Environment):
        """Evaluates one command issued from `scope`.

        Arguments are resolved against the caller's frame before the callee's
        frame exists, then bound into a fresh child of `scope`.
        """
        try:
            function = scope.lookup_function(command.target, search_ancestors=True)
            if function is None:
                raise UndefinedFunction(f'function "{command.target}" is not defined')

            frame = Environment(parent=scope)
            for argument in command.arguments.values():
                frame.variables[argument.name] = argument.resolve(scope)

            self._dbg("call", command.target, "args", frame.variables)
            self.invoke(function, frame, frame.variables)
        except FslError as e:
            raise e.annotate(f'failed to evaluate command "{command.target}"')
