"""Parser for the Quill language.

Parsing is done by a Lark LALR parser whose terminals are exactly the token
kinds produced by `quill.lexer.tokenize`. A custom Lark lexer feeds the
tokenizer's output into the parser, so there is a single source of truth for
lexical rules. The only adjustment is that BINARY_OPERATOR tokens are split
into ADDITIVE_OPERATOR and MULTIPLICATIVE_OPERATOR terminals so the grammar
can express precedence.

The resulting parse tree is transformed into `quill.ast` nodes by
`ASTTransformer`. `parse_program` is the public entry point.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, List, Optional

from lark import Lark, Token as LarkToken, Transformer
from lark.exceptions import UnexpectedInput, VisitError
from lark.lexer import Lexer

from .ast import (
    Program, VarDeclaration, FunctionDeclaration, ConditionalBranch,
    IfElseStatement, WhileStatement, ReturnStatement, Expr,
    NumericLiteral, StringLiteral, Identifier, AssignmentExpr, BinaryExpr,
    LogicalExpr, UnaryExpr, CallExpr, MemberExpr, Property, ObjectLiteral,
    ArrayLiteral,
)
from .errors import ParseError, QuillError
from .lexer import DEFAULT_LINE_TERMINATOR, Token, TokenKind, tokenize


QUILL_GRAMMAR = r"""
    ?start: program
    program: statement*

    // Statements
    ?statement: var_declaration
              | fn_declaration
              | if_statement
              | while_statement
              | return_statement
              | expression_statement

    var_declaration: declaration_kind IDENTIFIER [type_annotation] [EQUALS expression] SEMICOLON
    declaration_kind: LET | CONST | FINAL
    type_annotation: COLON type_name
    type_name: NUMBER_TYPE | STRING_TYPE | ARRAY_TYPE | BOOLEAN_TYPE | OBJECT_TYPE | DYNAMIC_TYPE

    fn_declaration: FN IDENTIFIER OPEN_PAREN [parameters] CLOSE_PAREN block
    parameters: parameter (COMMA parameter)*
    parameter: IDENTIFIER [type_annotation]

    if_statement: IF OPEN_PAREN expression CLOSE_PAREN block else_if_clause* [else_clause]
    else_if_clause: ELSE IF OPEN_PAREN expression CLOSE_PAREN block
    else_clause: ELSE block

    while_statement: WHILE OPEN_PAREN expression CLOSE_PAREN block
    return_statement: RETURN [expression] SEMICOLON
    expression_statement: expression SEMICOLON

    block: OPEN_BRACE statement* CLOSE_BRACE

    // Expressions with precedence
    ?expression: assignment
    ?assignment: logical_or
               | postfix EQUALS assignment -> assign
    ?logical_or: logical_and
               | logical_or OR logical_and -> logical
    ?logical_and: equality
                | logical_and AND equality -> logical
    ?equality: comparison
             | equality (EQUALITY | NOT_EQUALITY) comparison -> binary
    ?comparison: additive
               | comparison (LESS_THAN | GREATER_THAN | LESS_OR_EQUAL | GREATER_OR_EQUAL) additive -> binary
    ?additive: multiplicative
             | additive ADDITIVE_OPERATOR multiplicative -> binary
    ?multiplicative: unary
                   | multiplicative MULTIPLICATIVE_OPERATOR unary -> binary
    ?unary: postfix
          | (EXCLAMATION | ADDITIVE_OPERATOR) unary -> unary_op
    ?postfix: primary
            | postfix DOT IDENTIFIER -> property_access
            | postfix OPEN_BRACKET expression CLOSE_BRACKET -> index_access
            | postfix OPEN_PAREN [arguments] CLOSE_PAREN -> call
    arguments: expression (COMMA expression)*
    ?primary: NUMBER -> number
            | STRING -> string
            | IDENTIFIER -> identifier
            | OPEN_PAREN expression CLOSE_PAREN -> group
            | object_literal
            | array_literal
    object_literal: OPEN_BRACE [property (COMMA property)*] CLOSE_BRACE
    property: IDENTIFIER [COLON expression]
    array_literal: OPEN_BRACKET [expression (COMMA expression)*] CLOSE_BRACKET

    %declare NUMBER STRING IDENTIFIER
    %declare LET CONST FINAL FN RETURN IF ELSE WHILE AND OR
    %declare NUMBER_TYPE STRING_TYPE ARRAY_TYPE BOOLEAN_TYPE OBJECT_TYPE DYNAMIC_TYPE
    %declare EQUALS SEMICOLON COMMA DOT COLON
    %declare OPEN_PAREN CLOSE_PAREN OPEN_BRACE CLOSE_BRACE OPEN_BRACKET CLOSE_BRACKET
    %declare ADDITIVE_OPERATOR MULTIPLICATIVE_OPERATOR
    %declare EQUALITY NOT_EQUALITY GREATER_THAN LESS_THAN GREATER_OR_EQUAL LESS_OR_EQUAL EXCLAMATION
"""

# Terminals that carry no meaning once the tree has been built.
STRUCTURAL_TERMINALS = frozenset({
    'FN', 'RETURN', 'IF', 'ELSE', 'WHILE',
    'EQUALS', 'SEMICOLON', 'COMMA', 'DOT', 'COLON',
    'OPEN_PAREN', 'CLOSE_PAREN', 'OPEN_BRACE', 'CLOSE_BRACE',
    'OPEN_BRACKET', 'CLOSE_BRACKET',
})


def lark_terminal(token: Token) -> str:
    """Map a Quill token to the name of its grammar terminal."""
    if token.kind is TokenKind.BINARY_OPERATOR:
        return 'ADDITIVE_OPERATOR' if token.text in '+-' else 'MULTIPLICATIVE_OPERATOR'
    return token.kind.name


@lru_cache(maxsize=None)
def build_parser(line_terminator: str = DEFAULT_LINE_TERMINATOR) -> Lark:
    """Build (once per line terminator) a Lark parser fed by `tokenize`."""

    class QuillLexer(Lexer):
        def __init__(self, lexer_conf):
            pass

        def lex(self, data):
            for token in tokenize(data, line_terminator):
                if token.kind is TokenKind.END_OF_INPUT:
                    break
                yield LarkToken(lark_terminal(token), token.text, line=token.line, column=token.column)

    return Lark(
        QUILL_GRAMMAR,
        parser='lalr',
        lexer=QuillLexer,
        maybe_placeholders=False,
    )


@dataclass
class _Annotation:
    name: str


@dataclass
class _ElseClause:
    body: List[Any]


def _semantic(items: List[Any]) -> List[Any]:
    """Drop keyword and punctuation tokens from a rule's children."""
    return [item for item in items
            if not (isinstance(item, LarkToken) and item.type in STRUCTURAL_TERMINALS)]


class ASTTransformer(Transformer):
    """Transforms the raw parse tree into an AST."""

    def program(self, items):
        return Program(body=list(items))

    def block(self, items):
        return _semantic(items)

    def declaration_kind(self, items):
        return items[0]

    def type_name(self, items):
        return str(items[0])

    def type_annotation(self, items):
        return _Annotation(_semantic(items)[0])

    def var_declaration(self, items):
        items = _semantic(items)
        kind_token, name = items[0], items[1]
        annotation: Optional[_Annotation] = next((i for i in items if isinstance(i, _Annotation)), None)
        value: Optional[Expr] = next((i for i in items[2:] if isinstance(i, Expr)), None)
        constant = kind_token.type in ('CONST', 'FINAL')
        if constant and value is None:
            raise ParseError(f"{kind_token} declaration of {str(name)!r} must be initialized at {name.line}:{name.column}")
        return VarDeclaration(
            identifier=str(name),
            value=value,
            constant=constant,
            kind=str(kind_token),
            type_name=annotation.name if annotation else None,
        )

    def parameter(self, items):
        items = _semantic(items)
        annotation = items[1].name if len(items) > 1 else None
        return (str(items[0]), annotation)

    def parameters(self, items):
        return _semantic(items)

    def fn_declaration(self, items):
        items = _semantic(items)
        name = str(items[0])
        params = items[1] if len(items) == 3 else []
        return FunctionDeclaration(
            name=name,
            parameters=[p[0] for p in params],
            body=items[-1],
            parameter_types=[p[1] for p in params],
        )

    def if_statement(self, items):
        items = _semantic(items)
        check, body = items[0], items[1]
        child_checks = [i for i in items[2:] if isinstance(i, ConditionalBranch)]
        else_body = next((i.body for i in items[2:] if isinstance(i, _ElseClause)), None)
        return IfElseStatement(check=check, body=body, child_checks=child_checks, else_body=else_body)

    def else_if_clause(self, items):
        check, body = _semantic(items)
        return ConditionalBranch(check=check, body=body)

    def else_clause(self, items):
        return _ElseClause(_semantic(items)[0])

    def while_statement(self, items):
        check, body = _semantic(items)
        return WhileStatement(check=check, body=body)

    def return_statement(self, items):
        items = _semantic(items)
        return ReturnStatement(items[0] if items else None)

    def expression_statement(self, items):
        return _semantic(items)[0]

    # Expressions
    def assign(self, items):
        target, value = _semantic(items)
        if not isinstance(target, (Identifier, MemberExpr)):
            raise ParseError(f"invalid assignment target {type(target).__name__}")
        return AssignmentExpr(assignee=target, value=value)

    def logical(self, items):
        left, op, right = items
        operator = 'and' if op.type == 'AND' else 'or'
        return LogicalExpr(left=left, operator=operator, right=right)

    def binary(self, items):
        left, op, right = items
        return BinaryExpr(left=left, operator=str(op), right=right)

    def unary_op(self, items):
        op, operand = items
        return UnaryExpr(operator=str(op), operand=operand)

    def property_access(self, items):
        target, name = _semantic(items)
        return MemberExpr(object=target, property=Identifier(str(name)), computed=False)

    def index_access(self, items):
        target, index = _semantic(items)
        return MemberExpr(object=target, property=index, computed=True)

    def call(self, items):
        items = _semantic(items)
        args = items[1] if len(items) > 1 else []
        return CallExpr(callee=items[0], arguments=args)

    def arguments(self, items):
        return _semantic(items)

    def number(self, items):
        return NumericLiteral(int(items[0]))

    def string(self, items):
        return StringLiteral(str(items[0]))

    def identifier(self, items):
        return Identifier(str(items[0]))

    def group(self, items):
        return _semantic(items)[0]

    def object_literal(self, items):
        return ObjectLiteral(properties=_semantic(items))

    def property(self, items):
        items = _semantic(items)
        value = items[1] if len(items) > 1 else None
        return Property(key=str(items[0]), value=value)

    def array_literal(self, items):
        return ArrayLiteral(elements=_semantic(items))


def describe_unexpected(error: UnexpectedInput) -> str:
    token = getattr(error, 'token', None)
    if token is None or token.type == '$END':
        found = 'end of input'
        where = ''
    else:
        found = f"{token.type} {str(token)!r}"
        where = f" at {token.line}:{token.column}"
    expected = sorted(getattr(error, 'expected', None) or ())
    message = f"unexpected {found}{where}"
    if expected:
        message += f", expected one of {', '.join(expected)}"
    return message


def parse_program(source: str, line_terminator: str = DEFAULT_LINE_TERMINATOR) -> Program:
    """Parse Quill source code into an AST Program.

    LexError from the tokenizer propagates unchanged; grammar violations are
    raised as ParseError.
    """
    parser = build_parser(line_terminator)
    try:
        tree = parser.parse(source)
    except UnexpectedInput as e:
        raise ParseError(describe_unexpected(e)) from e
    try:
        return ASTTransformer().transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, QuillError):
            raise e.orig_exc from None
        raise
