'''
Expression lexer tests
'''

import regex

from imgexpr.util import ParseError
from imgexpr.lexer import Lexer

from pytest import raises


def test_kinds_and_positions():
    l = Lexer()
    tokens = list(l.tokens('sin(x) + 1.5'))
    assert [(t.kind, t.value, t.position) for t in tokens] == [
        ('name', 'sin', 0),
        ('lparen', '(', 3),
        ('name', 'x', 4),
        ('rparen', ')', 5),
        ('operator', '+', 7),
        ('number', 1.5, 9),
    ]


def test_numbers():
    l = Lexer()
    assert [t.value for t in l.tokens('1_000 .5 2. 0.25')] == \
        [1000.0, 0.5, 2.0, 0.25]


def test_number_then_name():
    l = Lexer()
    assert [t.kind for t in l.tokens('2x')] == ['number', 'name']


def test_names_with_digits_and_underscores():
    l = Lexer()
    assert [t.value for t in l.tokens('atan2 _a sr')] == \
        ['atan2', '_a', 'sr']


def test_commas_and_spaces():
    l = Lexer()
    tokens = list(l.tokens(' r ,\tg , b '))
    assert [t.kind for t in tokens] == \
        ['name', 'comma', 'name', 'comma', 'name']


def test_unknown_character():
    l = Lexer()
    with raises(ParseError, match=regex.escape("Couldn't lex '$ 1'")) as e:
        list(l.tokens('r $ 1'))
    assert e.value.position == 2


def test_no_comparison_operators():
    l = Lexer()
    with raises(ParseError, match='position 2'):
        list(l.tokens('1 = 1'))
