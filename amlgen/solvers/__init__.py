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

from amlgen.solvers.config import SolverConfig
from amlgen.solvers.results import (
    Results,
    TerminationCondition,
    SolutionStatus,
    optimal,
    infeasible,
    unbounded,
    time_limit,
)
from amlgen.solvers.base import SolverBase
from amlgen.solvers.factory import SolverFactory

# Register the solver backends
from amlgen.solvers import highs
