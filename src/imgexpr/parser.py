'''
Infix to postfix conversion, by shunting-yard.

Precedence, highest first:

    neg (unary -)   right
    ^               right
    * / %           left
    + -             left

So -2^2 is 4 and 2^3^2 is 512. Unary + is accepted and dropped.

Commas outside of any call separate output channels: "r, g, b".
'''

from collections import namedtuple

import logging

from .lexer import Lexer, Token
from .machine import Machine, CHANNELS
from .util import ParseError


logger = logging.getLogger(__name__)


Expression = namedtuple('Expression', 'text tokens channels')

# operator: (precedence, right associative)
PRECEDENCE = {
    'neg': (4, True),
    '^': (3, True),
    '*': (2, False),
    '/': (2, False),
    '%': (2, False),
    '+': (1, False),
    '-': (1, False),
}


class Parser:
    '''
    Single use shunting-yard parser for one expression.
    '''

    def __init__(self, text):
        self.text = text
        self.output = []
        self.operators = []
        # [function token or None, argument count] per open parenthesis,
        # with the top level (counting channels) at the bottom.
        self.scopes = [[None, 1]]
        self.previous = None

    def _error(self, message, position):
        return ParseError(message, self.text, position)

    def parse(self):
        '''
        Return the Expression, or raise ParseError.
        '''
        tokens = list(Lexer().tokens(self.text))
        if not tokens:
            raise ParseError('Empty expression', self.text)
        expect_operand = True
        for index, token in enumerate(tokens):
            following = tokens[index + 1] if index + 1 < len(tokens) else None
            if expect_operand:
                expect_operand = self._operand(token, following)
            else:
                expect_operand = self._operator(token)
            self.previous = token
        if expect_operand:
            raise self._error('Missing operand', len(self.text))
        while self.operators:
            top = self.operators.pop()
            if top.kind != 'operator':
                raise self._error('Unmatched parenthesis', top.position)
            self.output.append(top)

        channels = self.scopes[0][1]
        if channels not in CHANNELS:
            raise ParseError('{0} channels, expected 1, 3 or 4'.format(
                channels), self.text)
        self._check_depth(channels)
        logger.debug('Parsed %r into %s', self.text,
                     ' '.join(str(token.value) for token in self.output))
        return Expression(self.text, self.output, channels)

    def _operand(self, token, following):
        '''
        Handle a token where an operand is expected.

        Returns whether another operand is expected.
        '''
        if token.kind == 'number':
            self.output.append(token)
            return False
        elif token.kind == 'name' and following is not None and \
                following.kind == 'lparen':
            if token.value not in Machine.NAMESPACE:
                raise self._error('No such function {0!r}'.format(
                    token.value), token.position)
            self.operators.append(token._replace(kind='function'))
            return True
        elif token.kind == 'name':
            if token.value not in Machine.VARIABLES:
                if token.value in Machine.NAMESPACE:
                    message = 'Function {0!r} needs arguments'
                else:
                    message = 'No such variable {0!r}'
                raise self._error(message.format(token.value),
                                  token.position)
            self.output.append(token._replace(kind='variable'))
            return False
        elif token.kind == 'lparen':
            function = None
            if self.operators and self.operators[-1].kind == 'function':
                function = self.operators[-1]
            self.operators.append(token)
            self.scopes.append([function, 1])
            return True
        elif token.kind == 'operator' and token.value == '-':
            # Prefix; never pops anything.
            self.operators.append(token._replace(value='neg'))
            return True
        elif token.kind == 'operator' and token.value == '+':
            return True
        elif token.kind == 'rparen' and self._empty_call():
            self.scopes[-1][1] = 0
            self._close(token)
            return False
        raise self._error('Missing operand', token.position)

    def _operator(self, token):
        '''
        Handle a token where an operator is expected.

        Returns whether an operand is expected next.
        '''
        if token.kind == 'operator':
            precedence, right = PRECEDENCE[token.value]
            while self.operators and self.operators[-1].kind == 'operator':
                top, _ = PRECEDENCE[self.operators[-1].value]
                if top > precedence or top == precedence and not right:
                    self.output.append(self.operators.pop())
                else:
                    break
            self.operators.append(token)
            return True
        elif token.kind == 'rparen':
            self._close(token)
            return False
        elif token.kind == 'comma':
            self._comma(token)
            return True
        raise self._error('Missing operator', token.position)

    def _empty_call(self):
        return (self.previous is not None and
                self.previous.kind == 'lparen' and
                self.scopes[-1][0] is not None)

    def _flush(self):
        '''
        Move operators to output, up to the innermost open parenthesis.
        '''
        while self.operators and self.operators[-1].kind == 'operator':
            self.output.append(self.operators.pop())

    def _close(self, token):
        self._flush()
        if not self.operators:
            raise self._error('Unmatched parenthesis', token.position)
        self.operators.pop()
        function, count = self.scopes.pop()
        if function is None:
            return
        self.operators.pop()
        expected = Machine.function_arity(function.value)
        if count != expected:
            raise self._error(
                '{0!r} takes {1} argument(s), got {2}'.format(
                    function.value, expected, count),
                function.position)
        self.output.append(function)

    def _comma(self, token):
        scope = self.scopes[-1]
        if len(self.scopes) > 1 and scope[0] is None:
            raise self._error('Unexpected comma', token.position)
        self._flush()
        scope[1] += 1

    def _check_depth(self, channels):
        '''
        Replay stack depths, so the output is known to be evaluable.
        '''
        depth = 0
        for token in self.output:
            if token.kind == 'operator':
                arity = Machine.arity(Machine.OPERATORS[token.value])
            elif token.kind == 'function':
                arity = Machine.function_arity(token.value)
            else:
                arity = 0
            if depth < arity:
                raise self._error('Missing operand', token.position)
            depth += 1 - arity
        if depth != channels:
            raise ParseError('Malformed expression', self.text)


def parse(text):
    '''
    Parse an expression into an Expression (postfix tokens and channels).
    '''
    return Parser(text).parse()


def shunting_yard(text):
    '''
    Parse an expression into postfix tokens.
    '''
    return parse(text).tokens


__all__ = 'Expression', 'Parser', 'Token', 'parse', 'shunting_yard'
