from random import Random

from PIL import Image
from pytest import fixture

from imgexpr.machine import EvalContext
from imgexpr.parser import parse


@fixture
def image():
    '''
    4x4 opaque black, except (2, 2) which is (10, 20, 30, 255).
    '''
    img = Image.new('RGBA', (4, 4), (0, 0, 0, 255))
    img.putpixel((2, 2), (10, 20, 30, 255))
    return img


@fixture
def context(image):
    '''
    Factory of EvalContexts for pixel (2, 2) of the image fixture.
    '''
    pixels = image.load()

    def make(text, position=(2, 2), saved_rgb=(0, 0, 0), seed=0):
        x, y = position
        return EvalContext(tokens=parse(text).tokens,
                           size=image.size,
                           rgba=pixels[x, y],
                           saved_rgb=saved_rgb,
                           position=position,
                           rng=Random(seed),
                           image=pixels)
    return make
