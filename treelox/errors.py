from typing import Any, List


class LoxError(Exception):
    """Base class for every error reported by the scanner, parser or interpreter."""
    kind = 'Error'

    def __init__(self, message: str, line: int = 0, column: int = 0):
        super().__init__(f"[line {line}:{column}] {self.kind}: {message}")
        self.message = message
        self.line = line
        self.column = column


class ScanError(LoxError):
    kind = 'ScanError'


class ScanErrors(LoxError):
    """Every error found in one scanning pass."""
    kind = 'ScanErrors'

    def __init__(self, errors: List[ScanError]):
        first = errors[0]
        super().__init__('\n'.join(str(e) for e in errors), first.line, first.column)
        self.errors = errors

    def __str__(self) -> str:
        return self.message


###############################################################################
# Parse-time errors
###############################################################################


class ParseError(LoxError):
    kind = 'ParseError'


class UnexpectedTokenError(ParseError):
    kind = 'UnexpectedToken'


class TokenMismatchError(ParseError):
    kind = 'TokenMismatch'

    def __init__(self, expected: Any, found: Any, message: str):
        super().__init__(
            f"{message} (expected {expected.name}, found {found.type.name})",
            found.line,
            found.column,
        )
        self.expected = expected
        self.found = found


class MaxParamsExceededError(ParseError):
    kind = 'MaxParamsExceeded'


class ReturnNotInFunctionError(ParseError):
    kind = 'ReturnNotInFunction'


class BreakNotInLoopError(ParseError):
    kind = 'BreakNotInLoop'


class InvalidAssignmentTargetError(ParseError):
    kind = 'InvalidAssignmentTarget'


class TooManyArgumentsError(ParseError):
    kind = 'TooManyArguments'


class ExpectedExpressionError(ParseError):
    kind = 'ExpectedExpression'


class InvalidOperatorUsageError(ParseError):
    kind = 'InvalidOperatorUsage'


class NestingTooDeepError(ParseError):
    kind = 'NestingTooDeep'


class ParseErrors(LoxError):
    """Every statement-level error collected during one parse."""
    kind = 'ParseErrors'

    def __init__(self, errors: List[ParseError]):
        first = errors[0]
        super().__init__('\n'.join(str(e) for e in errors), first.line, first.column)
        self.errors = errors

    def __str__(self) -> str:
        return self.message


###############################################################################
# Runtime errors
###############################################################################


class LoxRuntimeError(LoxError):
    kind = 'RuntimeError'


class RuntimeTypeError(LoxRuntimeError):
    kind = 'RuntimeTypeError'


class UndefinedVariableError(LoxRuntimeError):
    kind = 'UndefinedVariable'

    def __init__(self, name: str, line: int = 0, column: int = 0):
        super().__init__(f"Undefined variable '{name}'.", line, column)
        self.name = name


class UninitializedVariableError(LoxRuntimeError):
    kind = 'UninitializedVariable'

    def __init__(self, name: str, line: int = 0, column: int = 0):
        super().__init__(f"Variable '{name}' read before initialization.", line, column)
        self.name = name


class StackOverflowError(LoxRuntimeError):
    kind = 'StackOverflow'


###############################################################################
# Control-flow signals
###############################################################################


class ReturnSignal:
    """Result of executing a `return` statement; carries the returned value."""
    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"ReturnSignal({self.value!r})"


class BreakSignal:
    """Result of executing a `break` statement."""
    def __init__(self, line: int = 0, column: int = 0):
        self.line = line
        self.column = column

    def __repr__(self) -> str:
        return 'BreakSignal()'
