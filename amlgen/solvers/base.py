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

import abc
import enum

from amlgen.solvers.config import SolverConfig


class SolverBase(abc.ABC):
    """
    This base class defines the methods required for all solvers:
        - available: Determines whether the solver is able to be run.
        - solve: The main method of every solver
        - version: The version of the solver

    Solvers are context managers; :py:meth:`__exit__` releases any
    resources the backend holds, including when the solve is
    interrupted.
    """

    CONFIG = SolverConfig()

    def __init__(self, **kwds):
        # Default to the name the solver was registered with in the
        # SolverFactory, or the (lowercase) class name
        if 'name' in kwds:
            self.name = kwds.pop('name')
        elif not hasattr(self, 'name'):
            self.name = type(self).__name__.lower()
        self.config = self.CONFIG(value=kwds)

    def __enter__(self):
        return self

    def __exit__(self, t, v, traceback):
        """Exit statement - enables `with` statements."""
        self.release()

    def release(self):
        """Release any handle held by the solver backend"""

    class Availability(enum.IntEnum):
        """
        Class to capture different statuses in which a solver can exist in
        order to record its availability for use.
        """

        FullLicense = 2
        NotFound = 0
        BadVersion = -1

        def __bool__(self):
            return self._value_ > 0

        def __format__(self, format_spec):
            return format(self.name, format_spec)

        def __str__(self):
            return self.name

    @abc.abstractmethod
    def solve(self, instance, **kwds):
        """
        Solve a generated instance.

        Parameters
        ----------
        instance: :class:`Instance<amlgen.core.instance.Instance>`
            The instance to be solved
        **kwds
            Overrides of the solver configuration (the solve budget)

        Returns
        -------
        results: :class:`Results<amlgen.solvers.results.Results>`
            A results object
        """

    @abc.abstractmethod
    def available(self):
        """Test if the solver is available on this system.

        Returns
        -------
        available: SolverBase.Availability
            An enum that indicates "how available" the solver is.
            Note that the enum can be cast to bool, which will
            be True if the solver is runable at all and False
            otherwise.
        """

    @abc.abstractmethod
    def version(self):
        """
        Returns
        -------
        version: tuple
            A tuple representing the version
        """
