'''
Stack machine tests
'''

from random import Random

from imgexpr.util import EvalError
from imgexpr.lexer import Token
from imgexpr.machine import Machine, evaluate, to_channel

from pytest import mark, raises


def grey(value, alpha=255):
    return value, value, value, alpha


@mark.parametrize('text,value', [
    ('1+2*3', 7),
    ('(1+2)*3', 9),
    ('8-3-2', 3),
    ('2^3^2', 255),
    ('-2^2', 4),
    ('7 % 4', 3),
    ('-1 % 4', 3),
    ('10 / 4 * 2', 5),
    ('max(3, min(9, 4))', 4),
    ('clamp(500, 0, 100)', 100),
    ('floor(2.7) + ceil(0.2)', 3),
    ('hypot(3, 4)', 5),
    ('abs(-12)', 12),
    ('sqrt(49)', 7),
])
def test_arithmetic(context, text, value):
    assert evaluate(context(text)) == grey(value)


def test_pixel_variables(context):
    assert evaluate(context('r+1')) == grey(11)
    assert evaluate(context('r, g, b, a')) == (10, 20, 30, 255)
    assert evaluate(context('x * 10 + y')) == grey(22)
    assert evaluate(context('w * h')) == grey(16)


def test_saved_variables(context):
    ctx = context('sr + 1, sg + 1, sb + 1', saved_rgb=(4, 5, 6))
    assert evaluate(ctx) == (5, 6, 7, 255)


def test_constants(context):
    assert evaluate(context('pi * 10')) == grey(31)
    assert evaluate(context('e * 10')) == grey(27)


def test_channel_conventions(context):
    # One value is grey, three keep the pixel's alpha, four set it.
    assert evaluate(context('100')) == grey(100)
    assert evaluate(context('b, g, r')) == (30, 20, 10, 255)
    assert evaluate(context('1, 2, 3, 4')) == (1, 2, 3, 4)


@mark.parametrize('value,channel', [
    (-5, 0),
    (0, 0),
    (1.9, 1),
    (254.99, 254),
    (255, 255),
    (1e9, 255),
])
def test_to_channel_clamps_and_truncates(value, channel):
    assert to_channel(value) == channel


def test_output_clamped(context):
    assert evaluate(context('300, 0-5, 1.9')) == (255, 0, 1, 255)


def test_neighbours(context):
    # (2, 2) is the only coloured pixel.
    assert evaluate(context('pr(x, y), pg(x, y), pb(x, y), pa(x, y)',
                            position=(1, 1))) == (0, 0, 0, 255)
    assert evaluate(context('pr(x + 1, y + 1)', position=(1, 1))) == grey(10)
    assert evaluate(context('pg(x + 1.9, y + 1.5)',
                            position=(1, 1))) == grey(20)


def test_neighbours_clamp_to_edges(context):
    assert evaluate(context('pb(100, 2)', position=(2, 2))) == grey(0)
    assert evaluate(context('pb(x, y) + pb(-3, -3)')) == grey(30)


def test_random_is_seeded(context):
    expected = Random(5)
    first = int(expected.random() * 255)
    second = int(expected.random() * 100)
    assert evaluate(context('rand * 255, rnd(100), 0', seed=5)) == \
        (first, second, 0, 255)


@mark.parametrize('text', [
    '1/0',
    '5 % 0',
    'sqrt(0-1)',
    'log(0)',
    'asin(2)',
    'exp(1000)',
    '10^400',
    '(0-8)^(1/3)',
])
def test_domain_errors(context, text):
    with raises(EvalError, match='Cannot apply') as e:
        evaluate(context(text))
    assert e.value.position == (2, 2)


def test_non_finite(context):
    with raises(EvalError, match='non-finite') as e:
        evaluate(context('exp(709) * 10'))
    assert '(2, 2)' in str(e.value)


def _raw(context, *tokens):
    return context('0')._replace(tokens=list(tokens))


def test_stack_underflow(context):
    with raises(EvalError, match='Less than 2 element'):
        evaluate(_raw(context,
                      Token('number', 1.0, 0),
                      Token('operator', '+', 1)))


def test_unknown_variable(context):
    with raises(EvalError, match="No such variable 'q'"):
        evaluate(_raw(context, Token('variable', 'q', 0)))


def test_unknown_function(context):
    with raises(EvalError, match="No such function 'nope'"):
        evaluate(_raw(context,
                      Token('number', 1.0, 0),
                      Token('function', 'nope', 1)))


def test_leftover_values(context):
    with raises(EvalError, match='2 value'):
        evaluate(_raw(context,
                      Token('number', 1.0, 0),
                      Token('number', 2.0, 1)))


def test_empty_stack(context):
    with raises(EvalError, match='0 value'):
        evaluate(_raw(context))


def test_grouping_tokens_are_rejected(context):
    with raises(EvalError, match='Unexpected lparen'):
        evaluate(_raw(context, Token('lparen', '(', 0)))


def test_function_arity():
    assert Machine.function_arity('sin') == 1
    assert Machine.function_arity('atan2') == 2
    assert Machine.function_arity('clamp') == 3
    assert Machine.function_arity('rnd') == 1
    assert Machine.function_arity('pa') == 2


def test_operator_arity():
    assert Machine.arity(Machine.OPERATORS['neg']) == 1
    assert all(Machine.arity(f) == 2
               for name, f in Machine.OPERATORS.items()
               if name != 'neg')


def test_run_leaves_channels_on_stack(context):
    machine = Machine(context('r, g, b'))
    assert machine.run() == (10, 20, 30, 255)
    assert list(machine.stack) == [10.0, 20.0, 30.0]
