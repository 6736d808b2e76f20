from functools import wraps


class ImgExprError(Exception):
    # Text of the expression being applied when the error occurred.
    expression = None


class ParseError(ImgExprError):
    '''
    Malformed expression text.

    Carries the expression and the character offset of the offending lexeme.
    '''
    def __init__(self, message, text=None, position=None):
        super().__init__(message)
        self.text = text
        self.position = position

    def __str__(self):
        if self.position is None or self.text is None:
            return self.args[0]
        return '{0} at position {1}: {2!r}'.format(
            self.args[0],
            self.position,
            self.text[self.position:self.position + 10])


class EvalError(ImgExprError):
    def __init__(self, message, position=None):
        super().__init__(message)
        self.position = position

    def __str__(self):
        if self.position is None:
            return self.args[0]
        return '{0} at pixel {1}'.format(self.args[0], self.position)


class BoundsError(ImgExprError):
    pass


class UnsupportedFormatError(ImgExprError):
    pass


def wrap_user_errors(fmt):
    '''
    Decorator converting numeric library errors into EvalErrors.

    Passes through ImgExprErrors. Wraps methods of objects with a
    ``position`` attribute, which ends up in the error.
    '''
    def decorator(f):
        @wraps(f)
        def wrapper(self, *args, **kwargs):
            try:
                return f(self, *args, **kwargs)
            except ImgExprError:
                raise
            except (ArithmeticError, ValueError) as e:
                raise EvalError(fmt.format(*args, error=e),
                                self.position) from e
        return wrapper
    return decorator
