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
#
# Logging helpers shared by the generator, the tests and the driver
#
import io
import logging


def is_debug_set(logger):
    """True only if DEBUG output was explicitly requested for ``logger``

    Unlike :py:meth:`logging.Logger.isEnabledFor`, a logger whose
    effective level is NOTSET does not count as debugging.  The
    generators use this to decide whether to build per-row debug
    messages at all.
    """
    if logger.manager.disable >= logging.DEBUG:
        return False
    return logging.NOTSET < logger.getEffectiveLevel() <= logging.DEBUG


class LoggingIntercept(object):
    r"""Capture the records one logger emits at or above ``level``

    While the context is active the logger's own handlers are detached
    and propagation is switched off, so the captured text is exactly
    what the code under test logged.  The context returns the output
    stream (a new :py:class:`io.StringIO` when ``output`` is None).

    >>> with LoggingIntercept(module='amlgen.core') as LOG:
    ...     logging.getLogger('amlgen.core').warning('%s rows', 3)
    >>> LOG.getvalue()
    '3 rows\n'

    """

    def __init__(
        self, output=None, module=None, level=logging.WARNING, formatter=None, logger=None
    ):
        if logger is not None and module is not None:
            raise ValueError(
                "LoggingIntercept: only one of 'module' and 'logger' is allowed"
            )
        self.output = output
        self.logger = logger if logger is not None else logging.getLogger(module)
        self.level = level
        self.formatter = formatter or logging.Formatter('%(message)s')
        self._handler = None
        self._saved = None

    def __enter__(self):
        logger = self.logger
        self._saved = (logger.level, logger.propagate, list(logger.handlers))
        stream = io.StringIO() if self.output is None else self.output
        self._handler = logging.StreamHandler(stream)
        self._handler.setFormatter(self.formatter)
        self._handler.setLevel(self.level)
        for h in self._saved[2]:
            logger.removeHandler(h)
        logger.propagate = False
        logger.setLevel(self.level)
        logger.addHandler(self._handler)
        return stream

    def __exit__(self, et, ev, tb):
        logger = self.logger
        logger.removeHandler(self._handler)
        self._handler = None
        level, logger.propagate, handlers = self._saved
        logger.setLevel(level)
        for h in handlers:
            logger.addHandler(h)


class LogHandler(logging.StreamHandler):
    """Stream handler used by the ``amlgen`` command line driver"""

    def __init__(self, stream=None, level=logging.NOTSET):
        super().__init__(stream)
        self.setLevel(level)
        self.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
