from os import path
from argparse import ArgumentParser, OPTIONAL

import logging
import sys

from prompt_toolkit import PromptSession

from .util import ImgExprError, ParseError
from .lexer import Lexer
from .machine import Machine
from .parser import parse
from .pipeline import Pipeline
from . import codec


logger = logging.getLogger(__name__)


class InteractiveInput:
    '''
    Prompt for one expression per line until EOF.
    '''
    def __init__(self, prompt):
        self.prompt = prompt

    def __iter__(self):
        try:
            session = PromptSession(message=self.prompt,
                                    vi_mode=True,
                                    enable_suspend=True,
                                    enable_open_in_editor=True,
                                    prompt_continuation=' ' * len(self.prompt),
                                    erase_when_done=False)
            while True:
                yield session.prompt()
        except EOFError:
            return


class CLI:
    '''
    Command line interface to the expression engine.
    '''

    DEFAULT_PROMPT = 'expr> '

    def parsed(self):
        '''
        Parse all expressions, reporting and skipping malformed ones.
        '''
        expressions = []
        for text in self.args.expressions:
            text = text.strip()
            if not text:
                continue
            try:
                expressions.append(parse(text))
            except ParseError as e:
                print('Expression: {0}'.format(text), file=sys.stderr)
                print(e, file=sys.stderr)
        return expressions

    def dumper(self):
        '''
        Dump every expression's postfix tokens, and arity.
        '''
        print('<kind>\t<value>\t<arity>')
        for expression in self.parsed():
            print('#', expression.text, '({0} channel(s))'.format(
                expression.channels))
            for token in expression.tokens:
                if token.kind == 'operator':
                    arity = Machine.arity(Machine.OPERATORS[token.value])
                elif token.kind == 'function':
                    arity = Machine.function_arity(token.value)
                else:
                    arity = 0
                print(token.kind, repr(token.value), arity, sep='\t')

    def executor(self):
        '''
        Apply expressions to the input image and save the result.
        '''
        if self.args.input is None:
            self.argument_parser.error('an input file is required')
        if not path.exists(self.args.input):
            print('File does not exist: {0}'.format(self.args.input),
                  file=sys.stderr)
            sys.exit(1)
        output = self.args.output or codec.default_output(self.args.input)

        expressions = self.parsed()
        if not expressions:
            print('No valid expression to apply', file=sys.stderr)
            sys.exit(1)

        try:
            # Output keeps the input's container, whatever -o is called.
            fmt = codec.get_format(self.args.input)
            frames, delays = codec.load(self.args.input)
            pipeline = Pipeline(expressions, seed=self.args.seed)
            codec.save(pipeline.process_frames(frames), delays, output, fmt)
        except ImgExprError as e:
            if self.args.verbose:
                logger.exception('Processing %s failed', self.args.input)
            if e.expression is not None:
                print('Expression: {0}'.format(e.expression), file=sys.stderr)
            print(e, file=sys.stderr)
            sys.exit(1)

    def raw_grammar(self):
        '''
        Print current internally defined grammar.
        '''
        lexer = Lexer()
        print(lexer.LEXEME)

    def _prompting_input(self):
        '''
        Return the source of expressions when none were given as arguments.

        Prompting if either:
        - prompt explicitly specified.
        - both stdin/out are a tty
        Otherwise one expression per line of stdin.
        '''
        if self.args.prompt or \
           sys.stdin.isatty() and sys.stdout.isatty():
            return InteractiveInput(prompt=self.args.prompt or
                                    self.DEFAULT_PROMPT)
        else:
            return sys.stdin

    def __init__(self):
        '''
        Create ready to run CLI.

        Does not run or parse command line arguments.
        '''
        self.argument_parser = ArgumentParser(
            description='Per-pixel image expressions')
        self.argument_parser.add_argument('input', nargs=OPTIONAL)
        self.argument_parser.add_argument('-v', '--verbose',
                                          action='store_true')
        self.argument_parser.add_argument('-o', '--output')
        self.argument_parser.add_argument('-s', '--seed', type=int)
        int_nonint_groups = self.argument_parser.add_mutually_exclusive_group()
        int_nonint_groups.add_argument('-e', '--expression',
                                       action='append',
                                       dest='expressions')
        int_nonint_groups.add_argument('-p', '--prompt',
                                       nargs=OPTIONAL,
                                       const=self.DEFAULT_PROMPT)
        main_groups = self.argument_parser.add_mutually_exclusive_group()
        for short_, long_, action in [('-G', '--raw-grammar',
                                       self.raw_grammar),
                                      ('-D', '--dump', self.dumper)]:
            main_groups.add_argument(short_, long_,
                                     action='store_const',
                                     const=action,
                                     dest='action')
        self.argument_parser.set_defaults(action=self.executor,
                                          expressions=None)

    def run(self, *, args=None):
        '''
        Run CLI, given these args, or previously passed CLI args.
        '''
        self.args = self.argument_parser.parse_args(args)
        logging.basicConfig(
            level=logging.DEBUG if self.args.verbose else logging.WARNING,
            format='%(levelname)s %(name)s: %(message)s')
        if self.args.expressions is None and \
           self.args.action != self.raw_grammar:
            self.args.expressions = self._prompting_input()
        try:
            self.args.action()
        except KeyboardInterrupt:
            sys.exit(1)
