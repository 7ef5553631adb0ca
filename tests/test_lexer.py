import pytest

from quill.errors import LexError
from quill.lexer import END_OF_INPUT_TEXT, TokenKind, tokenize


def pairs(source, **kwargs):
    return [(t.kind, t.text) for t in tokenize(source, **kwargs)]


def kinds(source):
    return [t.kind for t in tokenize(source)]


def test_empty_source_yields_only_end_of_input():
    tokens = tokenize('')
    assert len(tokens) == 1
    assert tokens[0].kind is TokenKind.END_OF_INPUT
    assert tokens[0].text == END_OF_INPUT_TEXT


def test_single_character_tokens():
    assert kinds('(){}[]:;,.') == [
        TokenKind.OPEN_PAREN, TokenKind.CLOSE_PAREN,
        TokenKind.OPEN_BRACE, TokenKind.CLOSE_BRACE,
        TokenKind.OPEN_BRACKET, TokenKind.CLOSE_BRACKET,
        TokenKind.COLON, TokenKind.SEMICOLON, TokenKind.COMMA, TokenKind.DOT,
        TokenKind.END_OF_INPUT,
    ]


def test_arithmetic_operators_share_one_kind():
    tokens = tokenize('+-*/%')
    assert [t.kind for t in tokens[:-1]] == [TokenKind.BINARY_OPERATOR] * 5
    assert [t.text for t in tokens[:-1]] == ['+', '-', '*', '/', '%']


def test_two_character_operators():
    assert pairs('== != >= <= && ||')[:-1] == [
        (TokenKind.EQUALITY, '=='),
        (TokenKind.NOT_EQUALITY, '!='),
        (TokenKind.GREATER_OR_EQUAL, '>='),
        (TokenKind.LESS_OR_EQUAL, '<='),
        (TokenKind.AND, '&&'),
        (TokenKind.OR, '||'),
    ]


def test_lookahead_falls_back_to_single_character():
    assert pairs('=') == [(TokenKind.EQUALS, '='), (TokenKind.END_OF_INPUT, END_OF_INPUT_TEXT)]
    assert pairs('!x')[:-1] == [(TokenKind.EXCLAMATION, '!'), (TokenKind.IDENTIFIER, 'x')]
    assert pairs('<1')[:-1] == [(TokenKind.LESS_THAN, '<'), (TokenKind.NUMBER, '1')]
    assert pairs('>')[:-1] == [(TokenKind.GREATER_THAN, '>')]


def test_equals_followed_by_equality():
    assert kinds('===')[:-1] == [TokenKind.EQUALITY, TokenKind.EQUALS]


@pytest.mark.parametrize('source', ['|', '&', 'a | b', 'a & b'])
def test_lone_pipe_or_ampersand_is_an_error(source):
    with pytest.raises(LexError) as info:
        tokenize(source)
    assert info.value.char in '|&'


def test_numbers_are_greedy_digit_runs():
    assert pairs('12345 7')[:-1] == [(TokenKind.NUMBER, '12345'), (TokenKind.NUMBER, '7')]
    # no decimal point handling: the dot is its own token
    assert kinds('1.5')[:-1] == [TokenKind.NUMBER, TokenKind.DOT, TokenKind.NUMBER]


@pytest.mark.parametrize('word, kind', [
    ('var', TokenKind.LET),
    ('const', TokenKind.CONST),
    ('final', TokenKind.FINAL),
    ('fn', TokenKind.FN),
    ('return', TokenKind.RETURN),
    ('if', TokenKind.IF),
    ('else', TokenKind.ELSE),
    ('while', TokenKind.WHILE),
    ('and', TokenKind.AND),
    ('or', TokenKind.OR),
    ('boolean', TokenKind.BOOLEAN_TYPE),
    ('number', TokenKind.NUMBER_TYPE),
    ('string', TokenKind.STRING_TYPE),
    ('array', TokenKind.ARRAY_TYPE),
    ('object', TokenKind.OBJECT_TYPE),
    ('dynamic', TokenKind.DYNAMIC_TYPE),
    ('fooBar1', TokenKind.IDENTIFIER),
    ('var2', TokenKind.IDENTIFIER),
    ('const_x', TokenKind.IDENTIFIER),
    ('Var', TokenKind.IDENTIFIER),
])
def test_word_classification(word, kind):
    assert pairs(word)[:-1] == [(kind, word)]


def test_unicode_letters_start_identifiers():
    assert pairs('größe = 1')[0] == (TokenKind.IDENTIFIER, 'größe')


def test_identifier_cannot_start_with_underscore():
    with pytest.raises(LexError):
        tokenize('_x')


def test_string_literal_strips_quotes():
    assert pairs('"hello"')[:-1] == [(TokenKind.STRING, 'hello')]
    assert pairs('"a # not a comment"')[:-1] == [(TokenKind.STRING, 'a # not a comment')]
    assert pairs('""')[:-1] == [(TokenKind.STRING, '')]


def test_unterminated_string_is_an_error():
    with pytest.raises(LexError) as info:
        tokenize('var s = "unterminated')
    assert info.value.char == '"'
    assert info.value.offset == 8


def test_comment_is_discarded_with_its_terminator():
    assert pairs('# note\nvar x') == pairs('\nvar x')
    assert kinds('var x # trailing comment') == [TokenKind.LET, TokenKind.IDENTIFIER, TokenKind.END_OF_INPUT]


def test_comment_uses_injected_line_terminator():
    source = '# note\r\nvar x'
    assert pairs(source, line_terminator='\r\n') == pairs('var x')
    # with a LF terminator the stray CR belongs to the comment body
    assert pairs(source, line_terminator='\n') == pairs('var x')


def test_comment_ends_only_at_configured_terminator():
    # LF does not end the comment when the terminator is CRLF
    assert kinds('# a\nvar x') == [TokenKind.LET, TokenKind.IDENTIFIER, TokenKind.END_OF_INPUT]
    assert [t.kind for t in tokenize('# a\nvar x', line_terminator='\r\n')] == [TokenKind.END_OF_INPUT]


def test_illegal_character_reports_position():
    with pytest.raises(LexError) as info:
        tokenize('var x = 1;\nvar y = @;')
    err = info.value
    assert err.char == '@'
    assert (err.line, err.column) == (2, 9)
    assert err.offset == 19


def test_whitespace_is_discarded():
    assert kinds(' \t\r\n') == [TokenKind.END_OF_INPUT]


def test_token_text_reconstructs_source_without_whitespace():
    source = 'var total = a+b*(c-1); # comment\nif (total >= 10) { x = y; }'
    texts = ''.join(t.text for t in tokenize(source)[:-1])
    assert texts == 'vartotal=a+b*(c-1);if(total>=10){x=y;}'


def test_positions_are_tracked():
    tokens = tokenize('var x\n  = 1')
    assert [(t.line, t.column) for t in tokens[:-1]] == [(1, 1), (1, 5), (2, 3), (2, 5)]


def test_exactly_one_end_of_input():
    tokens = tokenize('fn f(a, b) { return a; }')
    assert [t.kind for t in tokens].count(TokenKind.END_OF_INPUT) == 1
    assert tokens[-1].kind is TokenKind.END_OF_INPUT
