# Quill language package
# This package provides a tokenizer, parser and tree-walking interpreter for Quill.
from .errors import QuillError
from .interpreter import Interpreter, run_program
from .lexer import Token, TokenKind, tokenize
from .parser import parse_program

__all__ = [
    'run_program',
    'parse_program',
    'tokenize',
    'Token',
    'TokenKind',
    'Interpreter',
    'QuillError',
]
