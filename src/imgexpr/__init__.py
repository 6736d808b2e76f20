'''
Per-pixel image expressions.

Parses infix arithmetic such as "r * 0.5 + sr * 0.5" into postfix tokens and
runs them once per pixel over an image, on a stack machine that sees the
pixel's position and color, the image size, the previous pixel's result, the
rest of the source image and a (seedable) random source. Several expressions
are applied one after the other, each to the previous one's output.

Not a programming language: no user functions, no loops, no branching.
'''

from .cli import CLI
from .lexer import Lexer
from .machine import EvalContext, Machine, evaluate
from .parser import Expression, parse, shunting_yard
from .bounds import Bounds, find_non_zero_bounds
from .pipeline import Pipeline, apply


__all__ = 'Machine', 'Lexer', 'CLI', 'EvalContext', 'evaluate', \
          'Expression', 'parse', 'shunting_yard', 'Bounds', \
          'find_non_zero_bounds', 'Pipeline', 'apply'
