#  ___________________________________________________________________________
#
#  amlgen: Algebraic Modeling Language instance GENerator
#  Copyright (c) 2008-2025
#  National Technology and Engineering Solutions of Sandia, LLC
#  Under the terms of Contract DE-NA0003525 with National Technology and
#  Engineering Solutions of Sandia, LLC, the U.S. Government retains certain
#  rights in this software.
#  This software is distributed under the 3-clause BSD License.
#  ___________________________________________________________________________

import inspect
import textwrap


def format_exception(msg, prolog=None, epilog=None, exception=None, width=76):
    """Generate a formatted exception message

    This returns a formatted exception message, line wrapped for display
    on the console and with optional prolog and epilog messages.

    Parameters
    ----------
    msg: str
        The raw exception message

    prolog: str, optional
        A message to output before the exception message, ``msg``.  If
        this message is long enough to line wrap, the ``msg`` will be
        indented a level below the ``prolog`` message.

    epilog: str, optional
        A message to output after the exception message, ``msg``.  If
        provided, the ``msg`` will be indented a level below the
        ``prolog`` / ``epilog`` messages.

    exception: Exception, optional
        The raw exception being raised (used to improve initial line wrapping).

    width: int, optional
        The line length to wrap the exception message to.

    Returns
    -------
    str
    """
    fields = []

    if epilog:
        indent = ' ' * 8
    else:
        indent = ' ' * 4

    if exception is None:
        # default to the length of 'NotImplementedError: ', the longest
        # built-in name that we commonly raise
        initial_indent = ' ' * 21
    else:
        if not inspect.isclass(exception):
            exception = exception.__class__
        initial_indent = ' ' * (len(exception.__name__) + 2)
        if exception.__module__ != 'builtins':
            initial_indent += ' ' * (len(exception.__module__) + 1)

    if prolog is not None:
        if '\n' not in prolog:
            prolog = textwrap.fill(
                prolog,
                width=width,
                initial_indent=initial_indent,
                subsequent_indent=' ' * 4,
                break_long_words=False,
                break_on_hyphens=False,
            ).lstrip()
        if '\n' in prolog:
            indent = ' ' * 8
        fields.append(prolog)
        initial_indent = indent

    if '\n' not in msg:
        msg = textwrap.fill(
            msg,
            width=width,
            initial_indent=initial_indent,
            subsequent_indent=indent,
            break_long_words=False,
            break_on_hyphens=False,
        )
        if not fields:
            msg = msg.lstrip()
    fields.append(msg)

    if epilog is not None:
        if '\n' not in epilog:
            epilog = textwrap.fill(
                epilog,
                width=width,
                initial_indent=' ' * 4,
                subsequent_indent=' ' * 4,
                break_long_words=False,
                break_on_hyphens=False,
            )
        fields.append(epilog)

    return '\n'.join(fields)


class AMLException(Exception):
    """
    Exception class for other amlgen exceptions to inherit from,
    allowing amlgen exceptions to be caught in a general way
    (e.g., by a hosting service that compiles many models).
    Subclasses can define a class-level `default_message` attribute.
    """

    def __init__(self, *args):
        if not args and getattr(self, 'default_message', None):
            args = (self.default_message,)
        return super().__init__(*args)


class ApplicationError(AMLException):
    """
    An exception used when an external application (e.g., the solver
    backend) generates an error.
    """


class DeveloperError(AMLException, NotImplementedError):
    """
    Exception class used to throw errors that result from amlgen
    programming errors, rather than user modeling errors.
    """

    def __str__(self):
        return format_exception(
            repr(super().__str__()),
            prolog="Internal amlgen implementation error:",
            epilog="Please report this to the amlgen developers.",
            exception=self,
        )


class CompilationError(AMLException):
    """Base class for every error raised while compiling a model.

    Compilation errors are deterministic: compiling the same model and
    data again will fail the same way.  When the offending statement is
    known, ``lineno`` and ``column`` locate it in the source text.
    """

    default_message = 'Model compilation failed'

    def __init__(self, msg=None, lineno=None, column=None, filename=None):
        if msg is None:
            super().__init__()
        else:
            super().__init__(msg)
        self.message = self.args[0] if self.args else ''
        self.lineno = lineno
        self.column = column
        self.filename = filename

    @property
    def kind(self):
        return self.__class__.__name__

    @property
    def location(self):
        if self.lineno is None:
            return None
        return {'file': self.filename, 'line': self.lineno, 'column': self.column}

    def diagnostic(self):
        """Return the structured (JSON-compatible) form of this error"""
        return {
            'error': self.kind,
            'message': self.message,
            'location': self.location,
        }

    def __str__(self):
        if self.lineno is None:
            return self.message
        where = 'line %s' % (self.lineno,)
        if self.column is not None:
            where += ', column %s' % (self.column,)
        if self.filename:
            where = '%s, %s' % (self.filename, where)
        return '%s (%s)' % (self.message, where)


class ModelSyntaxError(CompilationError, SyntaxError):
    """Malformed model or data text.

    This is a :py:class:`SyntaxError` so that generic tooling recognizes
    it; ``expected`` lists the tokens the parser would have accepted.
    """

    def __init__(self, msg, lineno=None, column=None, filename=None, expected=()):
        super().__init__(msg, lineno=lineno, column=column, filename=filename)
        self.offset = column
        self.expected = tuple(expected)

    def diagnostic(self):
        ans = super().diagnostic()
        ans['expected'] = list(self.expected)
        return ans


class UnknownSymbolError(CompilationError, NameError):
    """A name is referenced that was never declared"""


class DuplicateSymbolError(CompilationError, NameError):
    """A name is declared twice with a different kind or shape"""


class CyclicDefinitionError(CompilationError):
    """A set or parameter definition (indirectly) refers to itself"""


class ShapeMismatchError(CompilationError, IndexError):
    """A symbol is referenced with a different number of indices than declared"""


class InvalidRangeError(CompilationError, ValueError):
    """An arithmetic set ``lo..hi`` cannot be evaluated"""


class MissingParameterValueError(CompilationError, KeyError):
    """A set or parameter entry was never supplied by the data

    ``name`` is the symbol and ``index`` the exact index tuple (or None
    for a set or a scalar parameter).
    """

    def __init__(self, msg, name=None, index=None, **kwds):
        super().__init__(msg, **kwds)
        self.name = name
        self.index = index

    # KeyError.__str__ would repr() the message
    __str__ = CompilationError.__str__


class InvalidDataError(CompilationError, ValueError):
    """The supplied data violates a declaration of the model"""


class InstanceBuildError(CompilationError):
    """Generic failure while constructing rows, columns or the objective"""


class IndexOutOfDomainError(InstanceBuildError, IndexError):
    """A parameter or variable is subscripted outside its declared domain"""


class NonlinearExpressionError(InstanceBuildError):
    """An expression that must be linear multiplies or divides variables"""
