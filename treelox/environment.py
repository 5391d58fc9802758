from typing import Any, Dict, Optional

from .ast import Symbol
from .errors import UndefinedVariableError


class Environment:
    """One scope of variable bindings, linked to its enclosing scope."""
    def __init__(self, parent: Optional['Environment'] = None):
        self.parent = parent
        self.values: Dict[str, Any] = {}

    @property
    def depth(self) -> int:
        # number of enclosing scopes; 0 for the globals
        depth = 0
        env = self.parent
        while env is not None:
            depth += 1
            env = env.parent
        return depth

    def define(self, name: str, value: Any):
        # re-declaration silently overwrites
        self.values[name] = value

    def contains(self, name: str) -> bool:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.values:
                return True
            env = env.parent
        return False

    def get(self, name: Symbol) -> Any:
        env: Optional[Environment] = self
        while env is not None:
            if name.name in env.values:
                return env.values[name.name]
            env = env.parent
        raise UndefinedVariableError(name.name, name.line, name.column)

    def assign(self, name: Symbol, value: Any):
        env: Optional[Environment] = self
        while env is not None:
            if name.name in env.values:
                env.values[name.name] = value
                return
            env = env.parent
        raise UndefinedVariableError(name.name, name.line, name.column)
