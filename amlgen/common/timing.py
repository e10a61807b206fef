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

import logging
import sys
from timeit import default_timer

from amlgen.common.modeling import NOTSET as _NotSpecified

logger = logging.getLogger('amlgen.timing')


def report_timing(stream=True, level=logging.INFO):
    """Set reporting of generation timing information

    Parameters
    ----------
    stream: bool, TextIOBase

        The destination stream to emit timing information.  If ``True``,
        defaults to ``sys.stdout``.  If ``False`` or ``None``, disables
        reporting of timing information.

    level: int

        The logging level for the timing logger
    """
    if stream:
        logger.setLevel(level)
        if stream is True:
            stream = sys.stdout
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter("      %(message)s"))
        logger.addHandler(handler)
        return handler
    else:
        logger.setLevel(logging.WARNING)
        for h in list(logger.handlers):
            logger.removeHandler(h)


class TicTocTimer(object):
    """A class to calculate and report elapsed time.

    Examples:
       >>> from amlgen.common.timing import TicTocTimer
       >>> timer = TicTocTimer()
       >>> timer.tic('starting timer') # starts the elapsed time timer (from 0)
       [    0.00] starting timer
       >>> # ... do task 1
       >>> dT = timer.toc('task 1')
       [+   0.00] task 1
       >>> print("elapsed time: %0.1f" % dT)
       elapsed time: 0.0

    If no ostream or logger is provided, then output is printed to sys.stdout

    Args:
        ostream (FILE): an optional output stream to print the timing
            information
        logger (Logger): an optional output stream using the python
           logging package. Note: the timing logged using ``logger.info()``
    """

    def __init__(self, ostream=_NotSpecified, logger=None):
        if ostream is _NotSpecified and logger is not None:
            ostream = None
        self._lastTime = self._loadTime = default_timer()
        self.ostream = ostream
        self.logger = logger
        self.level = logging.INFO

    def tic(self, msg=_NotSpecified, *args, ostream=_NotSpecified, logger=_NotSpecified):
        """Reset the tic/toc delta timer.

        Args:
            msg (str): The message to print out.  If not specified, then
                prints out "Resetting the tic/toc delta timer"; if msg
                is None, then no message is printed.
            *args (tuple): optional positional arguments used for
                %-formatting the `msg`
        """
        self._lastTime = self._loadTime = default_timer()
        if msg is _NotSpecified:
            msg = "Resetting the tic/toc delta timer"
        if msg is not None:
            self.toc(msg, *args, delta=False, ostream=ostream, logger=logger)

    def toc(
        self,
        msg=_NotSpecified,
        *args,
        delta=True,
        ostream=_NotSpecified,
        logger=_NotSpecified,
    ):
        """Print out the elapsed time.

        This resets the reference time from which the next delta time is
        calculated to the current time.

        Args:
            msg (str): The message to print out; if `msg` is None, then
                no message is printed.
            *args (tuple): optional positional arguments used for
                %-formatting the `msg`
            delta (bool): print out the elapsed wall clock time since
                the last call to :meth:`tic` (``False``) or since the
                most recent call to either :meth:`tic` or :meth:`toc`
                (``True`` (default)).
        """
        now = default_timer()
        if msg is _NotSpecified:
            msg = 'elapsed time'

        if delta:
            ans = now - self._lastTime
            fmt = "[+%7.2f] %s"
        else:
            ans = now - self._loadTime
            fmt = "[%8.2f] %s"
        self._lastTime = now

        if msg is not None:
            if args:
                msg = msg % args
            msg = fmt % (ans, msg)
            if logger is _NotSpecified:
                logger = self.logger
            if logger is not None:
                logger.log(self.level, msg)
            if ostream is _NotSpecified:
                ostream = self.ostream
                if ostream is _NotSpecified:
                    ostream = sys.stdout if logger is None else None
            if ostream is not None:
                ostream.write(msg + '\n')

        return ans

