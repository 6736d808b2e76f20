from collections import namedtuple

from .util import BoundsError


# Half-open: x in [min_x, max_x), y in [min_y, max_y).
Bounds = namedtuple('Bounds', 'min_x max_x min_y max_y')


def find_non_zero_bounds(image):
    '''
    Return the smallest Bounds holding every pixel with non-zero alpha.

    Raises BoundsError for a fully transparent image.
    '''
    image = image.convert('RGBA') if image.mode != 'RGBA' else image
    box = image.getchannel('A').getbbox()
    if box is None:
        raise BoundsError('No non-transparent pixel in {0}x{1} image'.format(
            *image.size))
    left, upper, right, lower = box
    return Bounds(left, right, upper, lower)
