import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List


@dataclass
class NativeFunction:
    name: str
    arity: int
    fn: Callable[[Any, List[Any]], Any]

    def __repr__(self) -> str:
        return f"<native fn {self.name}>"


def native_clock(interpreter: Any, args: List[Any]) -> float:
    return time.time()


def standard_natives() -> Dict[str, NativeFunction]:
    """Functions bound in every interpreter's global scope."""
    return {
        'clock': NativeFunction('clock', 0, native_clock),
    }
