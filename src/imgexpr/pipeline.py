'''
Applies expressions to images.

Each expression is one pass over the pixels inside the image's non-zero
bounds, in x-outer, y-inner order. A pass reads its input image and writes a
fresh, transparent output, which is the next expression's input.
'''

import logging
import random

from PIL import Image

from .bounds import find_non_zero_bounds
from .machine import EvalContext, evaluate
from .parser import parse
from .util import ImgExprError


logger = logging.getLogger(__name__)


def run_pass(image, expression, rng):
    '''
    Apply one parsed expression to every pixel within bounds of image.

    The previous pixel's output (sr, sg, sb) is threaded through the scan,
    starting at black, so visiting order is part of the result.
    '''
    source = image.convert('RGBA')
    size = source.size
    pixels = source.load()
    bounds = find_non_zero_bounds(source)
    logger.debug('Bounds: %s', bounds)

    output = Image.new('RGBA', size, (0, 0, 0, 0))
    written = output.load()
    saved = (0, 0, 0)
    for x in range(bounds.min_x, bounds.max_x):
        for y in range(bounds.min_y, bounds.max_y):
            result = evaluate(EvalContext(tokens=expression.tokens,
                                          size=size,
                                          rgba=pixels[x, y],
                                          saved_rgb=saved,
                                          position=(x, y),
                                          rng=rng,
                                          image=pixels))
            written[x, y] = result
            saved = result[:3]
    return output


class Pipeline:
    '''
    Ordered list of expressions, applied one after the other.
    '''

    def __init__(self, expressions, seed=None):
        '''
        :param expressions: Expressions or expression strings.
        :param seed: Seed for rand and rnd(); None for a fresh one.
        '''
        self.expressions = [parse(expression)
                            if isinstance(expression, str)
                            else expression
                            for expression
                            in expressions]
        self.seed = seed

    def frame_random(self, index=0):
        '''
        Random source for frame index.

        Derived from the seed and the index only, so frames do not depend on
        each other.
        '''
        if self.seed is None:
            return random.Random()
        return random.Random('{0}/{1}'.format(self.seed, index))

    def process(self, image, index=0):
        '''
        Run every expression over image, each on the previous one's output.

        Errors raised by a pass carry the text of its expression.
        '''
        rng = self.frame_random(index)
        for expression in self.expressions:
            logger.info('Expression: %r', expression.text)
            logger.debug('Tokens: %s', [token.value
                                        for token
                                        in expression.tokens])
            try:
                image = run_pass(image, expression, rng)
            except ImgExprError as e:
                e.expression = expression.text
                raise
        return image

    def process_frames(self, frames):
        '''
        Process animation frames independently, in order.
        '''
        return [self.process(frame, index)
                for index, frame
                in enumerate(frames)]


def apply(image, expressions, seed=None):
    '''
    Shorthand for Pipeline(expressions, seed).process(image).
    '''
    return Pipeline(expressions, seed=seed).process(image)
