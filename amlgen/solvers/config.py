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

from amlgen.common.config import (
    ConfigDict,
    ConfigValue,
    Bool,
    NonNegativeFloat,
    NonNegativeInt,
)


class SolverConfig(ConfigDict):
    """
    Base config (the solve budget) for all solver interfaces
    """

    def __init__(self, description=None, doc=None):
        super().__init__(description=description, doc=doc)

        self.tee = self.declare(
            'tee',
            ConfigValue(
                domain=Bool,
                default=False,
                description="If True, the solver log is printed to stdout.",
            ),
        )
        self.time_limit = self.declare(
            'time_limit',
            ConfigValue(
                domain=NonNegativeFloat,
                default=None,
                description="Time limit (in seconds) applied to the solver.",
            ),
        )
        self.node_limit = self.declare(
            'node_limit',
            ConfigValue(
                domain=NonNegativeInt,
                default=None,
                description="Maximum number of branch-and-bound nodes "
                "(mixed-integer models only).",
            ),
        )
        self.mip_rel_gap = self.declare(
            'mip_rel_gap',
            ConfigValue(
                domain=NonNegativeFloat,
                default=None,
                description="Relative optimality gap at which a mixed-integer "
                "solve terminates.",
            ),
        )
        self.presolve = self.declare(
            'presolve',
            ConfigValue(
                domain=Bool,
                default=True,
                description="If False, the solver presolve phase is disabled.",
            ),
        )
