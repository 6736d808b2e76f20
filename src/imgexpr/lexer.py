from collections import namedtuple
from functools import reduce
import operator

import regex

from .util import ParseError
from .machine import Machine


# kind is one of number, name, operator, lparen, rparen, comma on the way out
# of the lexer; the parser turns names into variable or function tokens.
Token = namedtuple('Token', 'kind value position')


class Lexer:
    '''
    Lexer for the infix expression *regular* grammar.

    For consistency, needs to be instantiated, despite holding no internal
    state.
    '''
    # Number. No sign, that's the unary minus operator's job.
    NUMBER = r'''
              (?:
                  # 1, 12, 1_200, 1_200. (notice trailing dot), 1.25
                  \d+
                  (?:
                      _\d+
                  )*
                  (?:
                      \.
                      \d*
                  )?
              )|(?:
                  # .5
                  \.
                  \d+
              )
              '''
    # Variable or function name
    NAME = r'[A-Za-z_][A-Za-z0-9_]*'

    SYMBOLS = [symbol
               for symbol
               in Machine.OPERATORS
               if len(symbol) == 1]
    OPERATOR = r'(?:' + r'|'.join(map(regex.escape, SYMBOLS)) + r')'
    SPACE = r'\s+'

    # All possible lexemes.
    LEXEME = r'(?<number>' + NUMBER + r')|' \
             r'(?<name>' + NAME + r')|' \
             r'(?<operator>' + OPERATOR + r')|' \
             r'(?<lparen>\()|' \
             r'(?<rparen>\))|' \
             r'(?<comma>,)|' \
             r'(?<space>' + SPACE + r')'
    # Default regex flags for matching lexemes
    FLAGS = reduce(operator.__or__,
                   {regex.POSIX,
                    regex.DOTALL,
                    regex.VERSION1,
                    regex.VERBOSE},
                   0)

    def lex(self, text):
        '''
        Take an expression and return all lexeme matches, with offsets.

        Raises ParseError on the first bad lexeme.
        '''
        position = 0
        while position < len(text):
            match = regex.match(type(self).LEXEME, text[position:],
                                flags=type(self).FLAGS)
            if match is None:
                raise ParseError("Couldn't lex {0!r}".format(
                    text[position:].strip()), text, position)
            yield position, match
            position += len(match.group(0))

    def isfeedable(self, match):
        '''
        Return True if lexeme can be fed to the parser.
        '''
        return 'space' not in self.matchedgroups(match).keys()

    def matchedgroups(self, match):
        '''
        Return lexeme matches.
        '''
        return {key: value
                for key, value
                in match.groupdict().items()
                if value}

    def tokens(self, text):
        '''
        Yield a Token for every feedable lexeme of text.
        '''
        for position, match in self.lex(text):
            if not self.isfeedable(match):
                continue
            (kind, value), = self.matchedgroups(match).items()
            if kind == 'number':
                value = float(value.replace('_', ''))
            yield Token(kind, value, position)
