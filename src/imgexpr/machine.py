'''
Per-pixel stack machine.

Runs a postfix token sequence against one pixel's EvalContext and converts
what's left on the stack into an RGBA color.
'''

from collections import deque, namedtuple
from functools import partial
from inspect import signature as getsignature, Parameter

import math
import operator

from .util import EvalError, wrap_user_errors


# Everything one evaluation may look at. Built fresh for every pixel.
EvalContext = namedtuple('EvalContext',
                         'tokens size rgba saved_rgb position rng image')

# Stack depths accepted at the end of a run: grey, RGB, RGBA.
CHANNELS = (1, 3, 4)


def clamp(value, low, high):
    '''
    Limit value to [low, high].
    '''
    return min(max(value, low), high)


def to_channel(value):
    '''
    Convert a stack value to a color channel: clamp to [0, 255], truncate.
    '''
    return int(clamp(value, 0.0, 255.0))


class Machine:
    '''
    Arithmetic stack machine for one pixel.

    Takes parser tokens and runs them. Holds no state beyond its own stack
    and the (immutable) context it was created with.
    '''

    def _unary(f):
        '''
        Work around 1-arg builtins failing inspect.getsignature.
        '''
        def wrapped(only):
            return f(only)
        wrapped.__doc__ = f.__doc__
        wrapped.__name__ = getattr(f, '__name__', repr(f))
        return wrapped

    def _binary(f):
        '''
        Work around 2-arg builtins failing inspect.getsignature.
        '''
        def wrapped(left, right):
            return f(left, right)
        wrapped.__doc__ = f.__doc__
        wrapped.__name__ = getattr(f, '__name__', repr(f))
        return wrapped

    OPERATORS = {
        '+': _binary(operator.__add__),
        '-': _binary(operator.__sub__),
        'neg': _unary(operator.__neg__),
        '*': _binary(operator.__mul__),
        '/': _binary(operator.__truediv__),
        # Floored, so negative offsets wrap around like coordinates should.
        '%': _binary(operator.__mod__),
        # math.pow raises instead of going complex on negative bases.
        '^': _binary(math.pow),
    }

    FUNCTIONS = {
        'sin': _unary(math.sin),
        'cos': _unary(math.cos),
        'tan': _unary(math.tan),
        'asin': _unary(math.asin),
        'acos': _unary(math.acos),
        'atan': _unary(math.atan),
        'sqrt': _unary(math.sqrt),
        'log': _unary(math.log),
        'exp': _unary(math.exp),
        'abs': _unary(abs),
        'floor': _unary(math.floor),
        'ceil': _unary(math.ceil),
        'min': _binary(min),
        'max': _binary(max),
        'pow': _binary(math.pow),
        'atan2': _binary(math.atan2),
        'hypot': _binary(math.hypot),
        'clamp': clamp,
    }

    VARIABLES = {
        'x': lambda context: context.position[0],
        'y': lambda context: context.position[1],
        'w': lambda context: context.size[0],
        'h': lambda context: context.size[1],
        'r': lambda context: context.rgba[0],
        'g': lambda context: context.rgba[1],
        'b': lambda context: context.rgba[2],
        'a': lambda context: context.rgba[3],
        'sr': lambda context: context.saved_rgb[0],
        'sg': lambda context: context.saved_rgb[1],
        'sb': lambda context: context.saved_rgb[2],
        'rand': lambda context: context.rng.random(),
        'pi': lambda context: math.pi,
        'e': lambda context: math.e,
    }

    def __init__(self, context):
        '''
        Create empty stack machine for one pixel.

        :param context: EvalContext of the pixel.
        '''
        self.context = context
        self.stack = deque()

    @property
    def position(self):
        return self.context.position

    def rnd(self, n):
        '''
        Uniform random number in [0, n).
        '''
        return self.context.rng.random() * n

    def _sample(self, x, y, channel):
        '''
        Read a channel of the source image, clamping to the nearest edge.
        '''
        width, height = self.context.size
        x = clamp(math.floor(x), 0, width - 1)
        y = clamp(math.floor(y), 0, height - 1)
        return self.context.image[x, y][channel]

    def sample_red(self, x, y):
        return self._sample(x, y, 0)

    def sample_green(self, x, y):
        return self._sample(x, y, 1)

    def sample_blue(self, x, y):
        return self._sample(x, y, 2)

    def sample_alpha(self, x, y):
        return self._sample(x, y, 3)

    # Functions that need the context; bound to the machine on use.
    SAMPLERS = {
        'rnd': rnd,
        'pr': sample_red,
        'pg': sample_green,
        'pb': sample_blue,
        'pa': sample_alpha,
    }

    # Every name callable from an expression.
    NAMESPACE = dict()
    for namespace in FUNCTIONS, SAMPLERS:
        NAMESPACE.update(namespace)

    @staticmethod
    def arity(f):
        '''
        Return number of non-default positional arguments.
        '''
        parameters = getsignature(f).parameters.values()
        positionals = [parameter
                       for parameter
                       in parameters
                       if parameter.kind == Parameter.POSITIONAL_OR_KEYWORD and
                          parameter.default == Parameter.empty]
        return len(positionals)

    @classmethod
    def function_arity(cls, name):
        '''
        Arity of a named function, as seen from an expression.
        '''
        if name in cls.SAMPLERS:
            return cls.arity(cls.SAMPLERS[name]) - 1
        return cls.arity(cls.FUNCTIONS[name])

    def run(self):
        '''
        Feed every token of the context and return the resulting RGBA.
        '''
        for token in self.context.tokens:
            self.feed(token)
        return self.result()

    def feed(self, token):
        '''
        Stack or apply a single token.
        '''
        if token.kind == 'number':
            self._pshstack(float(token.value))
        elif token.kind == 'variable':
            self._pshstack(self._load(token.value))
        elif token.kind in ('operator', 'function'):
            f = self._resolve(token)
            # Popped topmost first; reverse so 2 3 - is 2 - 3.
            args = reversed(self._popstack(self.arity(f)))
            self._pshstack(self._call(token, f, *args))
        else:
            raise EvalError('Unexpected {0} token {1!r}'.format(token.kind,
                                                                token.value),
                            self.position)

    def _resolve(self, token):
        if token.kind == 'operator':
            table = type(self).OPERATORS
        else:
            table = type(self).NAMESPACE
        if token.value not in table:
            raise EvalError('No such {0} {1!r}'.format(token.kind,
                                                       token.value),
                            self.position)
        f = table[token.value]
        if token.value in type(self).SAMPLERS:
            f = partial(f, self)
        return f

    def _load(self, name):
        variables = type(self).VARIABLES
        if name not in variables:
            raise EvalError('No such variable {0!r}'.format(name),
                            self.position)
        return variables[name](self.context)

    @wrap_user_errors('Cannot apply {0.value!r}: {error}')
    def _call(self, token, f, *args):
        '''
        Apply f, refusing results that are not finite numbers.
        '''
        result = float(f(*args))
        if not math.isfinite(result):
            raise EvalError('{0!r} gave a non-finite result'.format(
                token.value), self.position)
        return result

    def _pshstack(self, *new):
        '''
        Push all elements onto stack, leftmost at the bottom.
        '''
        self.stack.extend(new)

    def _popstack(self, n=1):
        '''
        Pop specified number of args from stack, topmost first.
        '''
        if len(self.stack) < n:
            raise EvalError('Less than {} element(s) on stack'.format(n),
                            self.position)
        return [self.stack.pop() for _ in range(n)]

    def result(self):
        '''
        Convert the final stack into an RGBA tuple.

        One value is grey (alpha kept), three are RGB (alpha kept), four are
        RGBA.
        '''
        if len(self.stack) not in CHANNELS:
            raise EvalError('{} value(s) left on stack, expected 1, 3 or 4'
                            .format(len(self.stack)), self.position)
        values = [to_channel(value) for value in self.stack]
        alpha = self.context.rgba[3]
        if len(values) == 1:
            return values[0], values[0], values[0], alpha
        elif len(values) == 3:
            return values[0], values[1], values[2], alpha
        return tuple(values)


def evaluate(context):
    '''
    Evaluate one pixel. Pure, apart from draws on the context's rng.
    '''
    return Machine(context).run()
