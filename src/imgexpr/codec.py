'''
Image files in and out, by extension.

Animated GIFs come in as frames with their delays and go back out with the
same delays, looping forever.
'''

from os import path
import logging

from PIL import Image, ImageSequence

from .util import UnsupportedFormatError


logger = logging.getLogger(__name__)


# Extension to Pillow format name
FORMATS = {
    'png': 'PNG',
    'jpg': 'JPEG',
    'jpeg': 'JPEG',
    'gif': 'GIF',
    'bmp': 'BMP',
    'ico': 'ICO',
    'tif': 'TIFF',
    'tiff': 'TIFF',
    'webp': 'WEBP',
}

# Formats that cannot store an alpha channel.
OPAQUE = {'JPEG'}


def get_extension(filename):
    return path.splitext(filename)[1][1:].lower()


def get_format(filename):
    '''
    Return the Pillow format name for filename's extension.
    '''
    extension = get_extension(filename)
    try:
        return FORMATS[extension]
    except KeyError:
        raise UnsupportedFormatError(
            'Unsupported file format {0!r}'.format(extension)) from None


def default_output(filename):
    return 'output.{0}'.format(get_extension(filename))


def load(filename):
    '''
    Return (frames, delays) of filename, frames as RGBA images.

    Still images are a single frame with a None delay.
    '''
    fmt = get_format(filename)
    logger.info('Input file: %s', filename)
    with Image.open(filename) as image:
        if fmt == 'GIF':
            frames = []
            delays = []
            for frame in ImageSequence.Iterator(image):
                frames.append(frame.convert('RGBA'))
                delays.append(frame.info.get('duration', 0))
        else:
            frames = [image.convert('RGBA')]
            delays = [None]
    logger.info('Loaded %d frame(s) of %dx%d', len(frames), *frames[0].size)
    return frames, delays


def save(frames, delays, filename, fmt=None):
    '''
    Write frames to filename.

    :param fmt: Pillow format name; defaults to the one filename's extension
                names.
    '''
    if fmt is None:
        fmt = get_format(filename)
    if fmt != 'GIF' and len(frames) > 1:
        raise UnsupportedFormatError(
            'Cannot write {0} frames as {1}'.format(len(frames), fmt))
    logger.info('Saving %d frame(s) to %s', len(frames), filename)
    if fmt in OPAQUE:
        frames = [frame.convert('RGB') for frame in frames]
    if fmt == 'GIF':
        frames[0].save(filename,
                       format=fmt,
                       save_all=True,
                       append_images=frames[1:],
                       duration=[delay or 0 for delay in delays],
                       loop=0,
                       disposal=2)
    else:
        frames[0].save(filename, format=fmt)
