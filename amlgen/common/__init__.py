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

# The log should be imported first so that the logging helpers are
# available to every other module
from . import log

from . import config, timing
from .errors import DeveloperError
