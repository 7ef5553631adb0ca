"""Tokenizer for the Quill language.

The tokenizer performs a single left-to-right scan over the source with one
character of lookahead. Every character is either consumed into exactly one
token or discarded as whitespace/comment; anything else is a `LexError`.
The returned sequence always ends with a single END_OF_INPUT token.

The line terminator that ends a `#` comment is passed in explicitly rather
than read from the platform, so tokenizing is deterministic everywhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, List, Tuple

from .errors import LexError

DEFAULT_LINE_TERMINATOR = '\n'
END_OF_INPUT_TEXT = 'EndOfFile'


class TokenKind(Enum):
    # literals
    NUMBER = auto()
    STRING = auto()
    IDENTIFIER = auto()
    # keywords
    LET = auto()
    CONST = auto()
    FINAL = auto()
    FN = auto()
    RETURN = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    AND = auto()
    OR = auto()
    # built-in type names
    NUMBER_TYPE = auto()
    STRING_TYPE = auto()
    ARRAY_TYPE = auto()
    BOOLEAN_TYPE = auto()
    OBJECT_TYPE = auto()
    DYNAMIC_TYPE = auto()
    # punctuation
    EQUALS = auto()
    SEMICOLON = auto()
    COMMA = auto()
    DOT = auto()
    COLON = auto()
    OPEN_PAREN = auto()
    CLOSE_PAREN = auto()
    OPEN_BRACE = auto()
    CLOSE_BRACE = auto()
    OPEN_BRACKET = auto()
    CLOSE_BRACKET = auto()
    # operators
    BINARY_OPERATOR = auto()
    EQUALITY = auto()
    NOT_EQUALITY = auto()
    GREATER_THAN = auto()
    LESS_THAN = auto()
    GREATER_OR_EQUAL = auto()
    LESS_OR_EQUAL = auto()
    EXCLAMATION = auto()

    END_OF_INPUT = auto()


KEYWORDS: Dict[str, TokenKind] = {
    'var': TokenKind.LET,
    'const': TokenKind.CONST,
    'final': TokenKind.FINAL,
    'fn': TokenKind.FN,
    'return': TokenKind.RETURN,
    'if': TokenKind.IF,
    'else': TokenKind.ELSE,
    'while': TokenKind.WHILE,
    'and': TokenKind.AND,
    'or': TokenKind.OR,
}

TYPE_NAMES: Dict[str, TokenKind] = {
    'boolean': TokenKind.BOOLEAN_TYPE,
    'number': TokenKind.NUMBER_TYPE,
    'string': TokenKind.STRING_TYPE,
    'array': TokenKind.ARRAY_TYPE,
    'object': TokenKind.OBJECT_TYPE,
    'dynamic': TokenKind.DYNAMIC_TYPE,
}

SINGLE_CHAR_TOKENS: Dict[str, TokenKind] = {
    '(': TokenKind.OPEN_PAREN,
    ')': TokenKind.CLOSE_PAREN,
    '{': TokenKind.OPEN_BRACE,
    '}': TokenKind.CLOSE_BRACE,
    '[': TokenKind.OPEN_BRACKET,
    ']': TokenKind.CLOSE_BRACKET,
    ':': TokenKind.COLON,
    ';': TokenKind.SEMICOLON,
    ',': TokenKind.COMMA,
    '.': TokenKind.DOT,
    '+': TokenKind.BINARY_OPERATOR,
    '-': TokenKind.BINARY_OPERATOR,
    '/': TokenKind.BINARY_OPERATOR,
    '*': TokenKind.BINARY_OPERATOR,
    '%': TokenKind.BINARY_OPERATOR,
}

# char -> (kind when followed by '=', kind otherwise)
LOOKAHEAD_OPERATORS: Dict[str, Tuple[TokenKind, TokenKind]] = {
    '=': (TokenKind.EQUALITY, TokenKind.EQUALS),
    '!': (TokenKind.NOT_EQUALITY, TokenKind.EXCLAMATION),
    '>': (TokenKind.GREATER_OR_EQUAL, TokenKind.GREATER_THAN),
    '<': (TokenKind.LESS_OR_EQUAL, TokenKind.LESS_THAN),
}

# only valid when doubled
DOUBLED_OPERATORS: Dict[str, TokenKind] = {
    '|': TokenKind.OR,
    '&': TokenKind.AND,
}

WHITESPACE = frozenset(' \t\r\n')


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    line: int = 0
    column: int = 0

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.text!r}, {self.line}:{self.column})"


def is_alpha(c: str) -> bool:
    """True for characters whose upper- and lower-case forms differ."""
    return c.upper() != c.lower()


def is_digit(c: str) -> bool:
    return '0' <= c <= '9'


def tokenize(source: str, line_terminator: str = DEFAULT_LINE_TERMINATOR) -> List[Token]:
    """Convert source code into a list of tokens.

    Raises LexError for illegal characters, a lone `|` or `&`, and string
    literals that are still open at the end of input.
    """
    if not line_terminator:
        raise ValueError('line terminator must be a non-empty string')
    tokens: List[Token] = []
    i = 0
    line = 1
    col = 1
    length = len(source)

    def advance(n: int = 1):
        nonlocal i, col, line
        for _ in range(n):
            if i < length and source[i] == '\n':
                line += 1
                col = 1
            else:
                col += 1
            i += 1

    while i < length:
        c = source[i]
        start_i = i
        start_line = line
        start_col = col
        if c in WHITESPACE:
            advance()
            continue
        if c in SINGLE_CHAR_TOKENS:
            tokens.append(Token(SINGLE_CHAR_TOKENS[c], c, line, col))
            advance()
            continue
        if c in LOOKAHEAD_OPERATORS:
            paired, single = LOOKAHEAD_OPERATORS[c]
            if source.startswith('=', i + 1):
                tokens.append(Token(paired, source[i:i + 2], line, col))
                advance(2)
            else:
                tokens.append(Token(single, c, line, col))
                advance()
            continue
        if c in DOUBLED_OPERATORS:
            if not source.startswith(c, i + 1):
                raise LexError(f"unexpected character {c!r} (expected {c * 2!r})", c, i, line, col)
            tokens.append(Token(DOUBLED_OPERATORS[c], c * 2, line, col))
            advance(2)
            continue
        if is_digit(c):
            while i < length and is_digit(source[i]):
                advance()
            tokens.append(Token(TokenKind.NUMBER, source[start_i:i], start_line, start_col))
            continue
        if is_alpha(c):
            while i < length and (is_alpha(source[i]) or is_digit(source[i]) or source[i] == '_'):
                advance()
            text = source[start_i:i]
            kind = KEYWORDS.get(text, TYPE_NAMES.get(text, TokenKind.IDENTIFIER))
            tokens.append(Token(kind, text, start_line, start_col))
            continue
        if c == '"':
            end = source.find('"', i + 1)
            if end == -1:
                raise LexError('unterminated string literal', c, i, line, col)
            tokens.append(Token(TokenKind.STRING, source[i + 1:end], start_line, start_col))
            advance(end + 1 - i)
            continue
        if c == '#':
            # the terminator is discarded along with the comment body
            end = source.find(line_terminator, i + 1)
            stop = length if end == -1 else end + len(line_terminator)
            advance(stop - i)
            continue
        raise LexError(f"unexpected character {c!r}", c, i, line, col)

    tokens.append(Token(TokenKind.END_OF_INPUT, END_OF_INPUT_TEXT, line, col))
    return tokens
