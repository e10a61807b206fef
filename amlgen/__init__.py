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

from . import common
from .version import __version__

from amlgen.model import Model, load_model
from amlgen.dataportal import DataPortal
from amlgen.core.instance import Instance, InstanceGenerator
from amlgen.repn import write_lp
from amlgen.solvers import SolverFactory
from amlgen.common.timing import report_timing
