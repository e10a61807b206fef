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

from amlgen.common.errors import ApplicationError, DeveloperError
from amlgen.solvers.base import SolverBase


class SolverFactoryClass(object):
    """Registry of the solver backends, by the name used to request them

    Calling the factory constructs a configured solver.  Unknown names
    return None unless ``exception=True``, in which case a ValueError
    is raised, and a backend whose ``available()`` check fails raises
    :py:class:`ApplicationError`.
    """

    def __init__(self):
        self._cls = {}
        self._doc = {}

    def __call__(self, name, exception=False, **kwds):
        cls = self._cls.get(str(name), None)
        if cls is None:
            if exception:
                raise ValueError("Unknown solver: '%s'" % (name,))
            return None
        opt = cls(**kwds)
        if exception:
            status = opt.available()
            if not status:
                raise ApplicationError(
                    "Solver '%s' is not available (%s)" % (name, status)
                )
        return opt

    def __iter__(self):
        return iter(self._cls)

    def __contains__(self, name):
        return str(name) in self._cls

    def get_class(self, name):
        return self._cls[name]

    def doc(self, name):
        return self._doc[name]

    def register(self, name, doc=None):
        def decorator(cls):
            if not issubclass(cls, SolverBase):
                raise DeveloperError(
                    "solver '%s' must derive from SolverBase (got %s)"
                    % (name, cls.__name__)
                )
            self._cls[name] = cls
            self._doc[name] = doc
            # The registered name is the one reported in results
            cls.name = name
            return cls

        return decorator

    def unregister(self, name):
        self._cls.pop(name, None)
        self._doc.pop(name, None)


SolverFactory = SolverFactoryClass()
