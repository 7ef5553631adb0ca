from typing import Any


class QuillError(Exception):
    """Base class for every error raised by the Quill toolchain."""


class LexError(QuillError):
    """Raised when the tokenizer meets input it cannot classify."""
    def __init__(self, message: str, char: str, offset: int, line: int, column: int):
        super().__init__(f"{message} at {line}:{column}")
        self.char = char
        self.offset = offset
        self.line = line
        self.column = column


class ParseError(QuillError):
    pass


class EvaluationError(QuillError):
    """Runtime failure while evaluating a program."""


class DuplicateDeclarationError(EvaluationError):
    def __init__(self, identifier: str):
        super().__init__(f"cannot redeclare {identifier!r}: already declared in this scope")
        self.identifier = identifier


class UndeclaredVariableError(EvaluationError):
    def __init__(self, identifier: str):
        super().__init__(f"cannot resolve {identifier!r}: it is not declared")
        self.identifier = identifier


class ImmutableAssignmentError(EvaluationError):
    def __init__(self, identifier: str):
        super().__init__(f"cannot assign to {identifier!r}: it was declared constant")
        self.identifier = identifier


class TypeMismatchError(EvaluationError):
    pass


class UnsupportedStatementError(EvaluationError):
    def __init__(self, node: Any):
        super().__init__(f"unsupported statement {type(node).__name__}")
        self.node = node


class NotCallableError(EvaluationError):
    pass


class ArgumentCountError(EvaluationError):
    pass


class ReturnSignal(Exception):
    """Internal exception to unwind a function body on `return`."""
    def __init__(self, value: Any):
        super().__init__('return')
        self.value = value
