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

import enum

from amlgen.common.config import ConfigDict, ConfigValue, In, NonNegativeFloat
from amlgen.core.label import format_label


class TerminationCondition(enum.Enum):
    """
    An Enum that enumerates the exit statuses of a solver call.

    Attributes
    ----------
    convergenceCriteriaSatisfied: 0
        The solver proved the returned solution optimal (to within the
        requested gap).
    maxTimeLimit: 1
        The solver exited due to reaching the time limit.
    iterationLimit: 2
        The solver exited due to reaching an iteration or node limit.
    unbounded: 5
        The solver exited because the problem is unbounded.
    provenInfeasible: 6
        The solver exited because the problem is infeasible.
    infeasibleOrUnbounded: 8
        The solver could not tell infeasibility from unboundedness.
    error: 9
        The solver exited with some error.
    emptyModel: 12
        The model being solved did not have any variables.
    unknown: 42
        All other unrecognized exit statuses fall in this category.
    """

    convergenceCriteriaSatisfied = 0

    maxTimeLimit = 1

    iterationLimit = 2

    unbounded = 5

    provenInfeasible = 6

    infeasibleOrUnbounded = 8

    error = 9

    emptyModel = 12

    unknown = 42


class SolutionStatus(enum.Enum):
    """
    An Enum that enumerates the status of the solution returned by the
    solver.

    Attributes
    ----------
    noSolution: 0
        No (single) solution was found.
    feasible: 20
        A solution for which all of the constraints are satisfied.
    optimal: 30
        A feasible solution where the objective reaches its sense.
    """

    noSolution = 0

    feasible = 20

    optimal = 30


# The terminal statuses reported to callers
optimal = 'optimal'
infeasible = 'infeasible'
unbounded = 'unbounded'
time_limit = 'time_limit'

status_map = {
    TerminationCondition.convergenceCriteriaSatisfied: optimal,
    TerminationCondition.emptyModel: optimal,
    TerminationCondition.maxTimeLimit: time_limit,
    TerminationCondition.iterationLimit: time_limit,
    TerminationCondition.provenInfeasible: infeasible,
    TerminationCondition.unbounded: unbounded,
}


class Results(ConfigDict):
    """
    Attributes
    ----------
    termination_condition: :class:`TerminationCondition`
        The reason the solver exited.
    solution_status: :class:`SolutionStatus`
        The status of the returned solution.
    objective_value: float
        The objective value of the returned solution (including the
        objective constant), or None if no solution was returned.
    variable_values: dict
        ``{(var name, index tuple): value}`` for every column of the
        instance, or None if no solution was returned.
    duals: dict
        ``{row label: dual value}`` (pure LP instances only).
    solver_name: str
        The name of the solver in use.
    wall_time: float
        Elapsed wall clock time of the solver call.
    message: str
        The solver exit message.
    """

    def __init__(self, description=None, doc=None):
        super().__init__(description=description, doc=doc)

        self.termination_condition = self.declare(
            'termination_condition',
            ConfigValue(
                domain=In(TerminationCondition),
                default=TerminationCondition.unknown,
                description="The reason the solver exited. This is a member of the "
                "TerminationCondition enum.",
            ),
        )
        self.solution_status = self.declare(
            'solution_status',
            ConfigValue(
                domain=In(SolutionStatus),
                default=SolutionStatus.noSolution,
                description="The result of the solve call. This is a member of "
                "the SolutionStatus enum.",
            ),
        )
        self.objective_value = self.declare(
            'objective_value',
            ConfigValue(
                domain=float,
                default=None,
                description="The objective value of the returned solution.",
            ),
        )
        self.variable_values = self.declare(
            'variable_values',
            ConfigValue(
                default=None,
                description="Map of (variable name, index) to the solution value.",
            ),
        )
        self.duals = self.declare(
            'duals',
            ConfigValue(
                default=None,
                description="Map of row label to the dual value (LP only).",
            ),
        )
        self.solver_name = self.declare(
            'solver_name',
            ConfigValue(domain=str, description="The name of the solver in use."),
        )
        self.wall_time = self.declare(
            'wall_time',
            ConfigValue(
                domain=NonNegativeFloat,
                description="Elapsed wall clock time of the solver call.",
            ),
        )
        self.message = self.declare(
            'message',
            ConfigValue(domain=str, description="The solver exit message."),
        )

    @property
    def status(self):
        """One of 'optimal', 'infeasible', 'unbounded' or 'time_limit'"""
        return status_map.get(self.termination_condition)

    def report(self):
        """Return the structured (JSON-compatible) solution report"""
        ans = {
            'solver': self.solver_name,
            'status': self.status,
            'termination_condition': self.termination_condition.name,
            'objective_value': self.objective_value,
            'wall_time': self.wall_time,
            'message': self.message,
        }
        if self.variable_values is not None:
            ans['values'] = [
                {
                    'variable': format_label(name, index),
                    'name': name,
                    'index': list(index),
                    'value': value,
                }
                for (name, index), value in self.variable_values.items()
            ]
        if self.duals is not None:
            ans['duals'] = dict(self.duals)
        return ans
