"""CLI entry point for the Quill interpreter.

Usage:
    python -m quill [-v|-vv|-vvv] [--line-terminator lf|crlf|native] <program_file>
    python -m quill [-v...] --emit-ast <program_file>
    python -m quill [-v...] --ast <ast_json_file>
    python -m quill --tokens <program_file>

Options:
  -v                 Increase debug verbosity (can be repeated)
  --emit-ast         Parse the given .quill file and emit an AST JSON file
  --ast              Execute a previously emitted AST JSON file
  --tokens           Print the token stream of the given file
  --line-terminator  Line terminator that ends `#` comments (default: lf)

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. After a program runs, the display form of
its final value is printed.
"""

import argparse
import json
import os
import sys
from pathlib import Path

from .ast_json import ast_to_obj, program_from_obj
from .errors import QuillError
from .interpreter import Interpreter
from .lexer import tokenize
from .parser import parse_program
from .values import to_string

LINE_TERMINATORS = {
    'lf': '\n',
    'crlf': '\r\n',
    'native': os.linesep,
}


def read_source(path: Path) -> str:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'r', encoding='utf-8', newline='') as f:
        return f.read()


def fail(e: QuillError):
    print(f"{type(e).__name__}: {e}", file=sys.stderr)
    sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog='quill', description="Quill language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--line-terminator', choices=sorted(LINE_TERMINATORS), default='lf',
                        help='line terminator that ends # comments')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='QUILL_FILE', help='emit AST JSON for the given .quill file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    group.add_argument('--tokens', metavar='QUILL_FILE', help='print the token stream of the given .quill file')
    parser.add_argument('program', nargs='?', help='Quill program file (.quill) to execute')
    args = parser.parse_args(argv)
    line_terminator = LINE_TERMINATORS[args.line_terminator]

    # Token dump mode
    if args.tokens:
        source = read_source(Path(args.tokens))
        try:
            tokens = tokenize(source, line_terminator)
        except QuillError as e:
            fail(e)
        for token in tokens:
            print(f"{token.line}:{token.column}\t{token.kind.name}\t{token.text}")
        return

    # Emit AST mode
    if args.emit_ast:
        program_file = Path(args.emit_ast)
        source = read_source(program_file)
        try:
            ast_program = parse_program(source, line_terminator)
        except QuillError as e:
            fail(e)
        obj = ast_to_obj(ast_program)
        out_path = program_file.with_name(program_file.name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(obj, out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    # Execute from AST JSON
    if args.ast:
        ast_path = Path(args.ast)
        if not ast_path.exists():
            print(f"Error: file {ast_path} not found", file=sys.stderr)
            sys.exit(1)
        try:
            with open(ast_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            ast_program = program_from_obj(data)
        except ValueError as e:
            print(f"Error: {ast_path}: {e}", file=sys.stderr)
            sys.exit(1)
        execute(ast_program, args.v)
        return

    # Default: execute source file
    if not args.program:
        parser.error('missing program file; or use --emit-ast/--ast/--tokens')
    source = read_source(Path(args.program))
    try:
        ast_program = parse_program(source, line_terminator)
    except QuillError as e:
        fail(e)
    execute(ast_program, args.v)


def execute(ast_program, debug_level: int) -> None:
    with Interpreter(debug_level=debug_level) as interpreter:
        try:
            result = interpreter.run(ast_program)
        except QuillError as e:
            fail(e)
    print(to_string(result))


if __name__ == '__main__':
    main()
