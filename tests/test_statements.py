from dataclasses import dataclass

import pytest

from quill.ast import (
    AssignmentExpr, BinaryExpr, ConditionalBranch, FunctionDeclaration,
    Identifier, IfElseStatement, NumericLiteral, Program, ReturnStatement,
    Stmt, StringLiteral, VarDeclaration, WhileStatement,
)
from quill.environment import Environment
from quill.errors import (
    DuplicateDeclarationError, EvaluationError, ImmutableAssignmentError,
    TypeMismatchError, UnsupportedStatementError,
)
from quill.interpreter import Interpreter
from quill.values import FunctionVal, NullVal, NumberVal, StringVal

TRUE = Identifier('true')
FALSE = Identifier('false')


def append(label):
    """ran = ran + label"""
    return AssignmentExpr(Identifier('ran'), BinaryExpr(Identifier('ran'), '+', StringLiteral(label)))


def run(*body):
    interp = Interpreter()
    program = Program([VarDeclaration('ran', StringLiteral(''))] + list(body))
    result = interp.run(program)
    return interp, result


def test_empty_program_evaluates_to_null():
    assert Interpreter().run(Program([])) == NullVal()


def test_program_returns_last_statement_value():
    interp = Interpreter()
    result = interp.run(Program([NumericLiteral(1), NumericLiteral(2)]))
    assert result == NumberVal(2)


def test_var_declaration_without_value_is_null():
    interp = Interpreter()
    assert interp.run(Program([VarDeclaration('x', None)])) == NullVal()
    assert interp.global_scope.lookup('x') == NullVal()


def test_var_declaration_returns_declared_value():
    interp = Interpreter()
    assert interp.run(Program([VarDeclaration('x', NumericLiteral(7))])) == NumberVal(7)


@pytest.mark.parametrize('kind', ['const', 'final'])
def test_const_and_final_are_immutable(kind):
    program = Program([
        VarDeclaration('x', NumericLiteral(1), constant=True, kind=kind),
        AssignmentExpr(Identifier('x'), NumericLiteral(2)),
    ])
    interp = Interpreter()
    with pytest.raises(ImmutableAssignmentError):
        interp.run(program)
    assert interp.global_scope.lookup('x') == NumberVal(1)


def test_var_is_mutable():
    interp = Interpreter()
    interp.run(Program([
        VarDeclaration('x', NumericLiteral(1)),
        AssignmentExpr(Identifier('x'), NumericLiteral(2)),
    ]))
    assert interp.global_scope.lookup('x') == NumberVal(2)


def test_duplicate_declaration_in_program_fails():
    with pytest.raises(DuplicateDeclarationError):
        Interpreter().run(Program([
            VarDeclaration('x', NumericLiteral(1)),
            VarDeclaration('x', NumericLiteral(2)),
        ]))


def test_function_declaration_captures_current_scope():
    interp = Interpreter()
    scope = Environment(interp.global_scope)
    fn = interp.execute(FunctionDeclaration('f', ['a'], [Identifier('a')]), scope)
    assert isinstance(fn, FunctionVal)
    assert fn.declaration_scope is scope
    assert scope.lookup('f') is fn
    with pytest.raises(ImmutableAssignmentError):
        scope.assign('f', NumberVal(1))


def test_code_block_uses_one_child_scope():
    interp = Interpreter()
    scope = interp.global_scope
    result = interp.execute_block([
        VarDeclaration('y', NumericLiteral(2)),
        AssignmentExpr(Identifier('y'), NumericLiteral(3)),
    ], scope)
    assert result == NumberVal(3)
    assert 'y' not in scope


def test_empty_code_block_is_null():
    interp = Interpreter()
    assert interp.execute_block([], interp.global_scope) == NullVal()


def test_if_takes_main_branch():
    interp, _ = run(IfElseStatement(TRUE, [append('A')], else_body=[append('C')]))
    assert interp.global_scope.lookup('ran') == StringVal('A')


def test_first_matching_child_check_runs_only():
    # the last child check would fail to resolve if it were evaluated
    interp, _ = run(IfElseStatement(
        FALSE, [append('A')],
        child_checks=[
            ConditionalBranch(FALSE, [append('X')]),
            ConditionalBranch(TRUE, [append('B')]),
            ConditionalBranch(Identifier('never_declared'), [append('Y')]),
        ],
        else_body=[append('C')],
    ))
    assert interp.global_scope.lookup('ran') == StringVal('B')


def test_else_runs_when_no_child_check_matches():
    interp, _ = run(IfElseStatement(
        FALSE, [append('A')],
        child_checks=[ConditionalBranch(FALSE, [append('B')])],
        else_body=[append('C')],
    ))
    assert interp.global_scope.lookup('ran') == StringVal('C')


def test_nothing_runs_without_match_or_else():
    interp, _ = run(IfElseStatement(FALSE, [append('A')]))
    assert interp.global_scope.lookup('ran') == StringVal('')


def test_if_statement_result_is_always_null():
    interp = Interpreter()
    result = interp.execute(IfElseStatement(TRUE, [NumericLiteral(5)]), interp.global_scope)
    assert result == NullVal()


def test_if_body_is_block_scoped():
    interp, _ = run(IfElseStatement(TRUE, [VarDeclaration('inner', NumericLiteral(1))]))
    assert 'inner' not in interp.global_scope


@pytest.mark.parametrize('check', [NumericLiteral(1), StringLiteral('yes'), Identifier('null')])
def test_if_condition_must_be_boolean(check):
    with pytest.raises(TypeMismatchError, match='if condition must be boolean'):
        run(IfElseStatement(check, [append('A')]))


def test_child_check_must_be_boolean():
    with pytest.raises(TypeMismatchError):
        run(IfElseStatement(FALSE, [], child_checks=[ConditionalBranch(NumericLiteral(0), [])]))


def test_while_runs_body_in_fresh_scope_each_iteration():
    interp = Interpreter()
    interp.run(Program([
        VarDeclaration('i', NumericLiteral(0)),
        WhileStatement(
            BinaryExpr(Identifier('i'), '<', NumericLiteral(3)),
            [
                # redeclaring in every iteration only works with a new scope each time
                VarDeclaration('step', NumericLiteral(1)),
                AssignmentExpr(Identifier('i'), BinaryExpr(Identifier('i'), '+', Identifier('step'))),
            ],
        ),
    ]))
    assert interp.global_scope.lookup('i') == NumberVal(3)


def test_while_condition_must_be_boolean():
    with pytest.raises(TypeMismatchError, match='while condition must be boolean'):
        Interpreter().run(Program([WhileStatement(NumericLiteral(1), [])]))


def test_return_outside_function_fails():
    with pytest.raises(EvaluationError, match='outside of a function'):
        Interpreter().run(Program([ReturnStatement(NumericLiteral(1))]))


def test_unknown_statement_is_rejected():
    @dataclass
    class GotoStatement(Stmt):
        label: str

    with pytest.raises(UnsupportedStatementError) as info:
        Interpreter().run(Program([GotoStatement('top')]))
    assert 'GotoStatement' in str(info.value)
