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
import re

import numpy as np
import scipy
import scipy.sparse
from scipy import optimize

from amlgen.common.errors import ApplicationError
from amlgen.common.timing import TicTocTimer
from amlgen.model.decl import maximize
from amlgen.solvers.base import SolverBase
from amlgen.solvers.config import SolverConfig
from amlgen.solvers.factory import SolverFactory
from amlgen.solvers.results import Results, SolutionStatus, TerminationCondition

logger = logging.getLogger('amlgen.solvers')


def _termination_condition(status, message):
    msg = message.lower()
    if 'infeasible or unbounded' in msg or 'unbounded or infeasible' in msg:
        return TerminationCondition.infeasibleOrUnbounded
    if status == 0:
        return TerminationCondition.convergenceCriteriaSatisfied
    if status == 1:
        if 'time' in msg:
            return TerminationCondition.maxTimeLimit
        return TerminationCondition.iterationLimit
    if status == 2:
        return TerminationCondition.provenInfeasible
    if status == 3:
        return TerminationCondition.unbounded
    return TerminationCondition.error


@SolverFactory.register('highs', doc='The HiGHS LP/MIP solver (through scipy.optimize)')
class Highs(SolverBase):
    """Interface to HiGHS as shipped with :py:mod:`scipy.optimize`

    Instances with integer or binary columns are solved with
    :py:func:`scipy.optimize.milp`; pure LPs are solved with
    :py:func:`scipy.optimize.linprog`, which also returns row duals.
    """

    CONFIG = SolverConfig()

    def available(self):
        # scipy.optimize.milp appeared in scipy 1.9
        if self.version() < (1, 9):
            return self.Availability.BadVersion
        return self.Availability.FullLicense

    def version(self):
        return tuple(int(v) for v in re.findall(r'\d+', scipy.__version__)[:3])

    def solve(self, instance, **kwds):
        config = self.config(kwds)
        if not self.available():
            raise ApplicationError(
                "Solver '%s' is not available (scipy %s; 1.9 or newer is required)"
                % (self.name, scipy.__version__)
            )
        timer = TicTocTimer(ostream=None)
        timer.tic(None)

        results = Results()
        results.solver_name = self.name
        matrix = instance.to_matrix()
        sign = -1 if matrix.sense == maximize else 1

        if not instance.columns:
            results.termination_condition = TerminationCondition.emptyModel
            results.solution_status = SolutionStatus.optimal
            results.objective_value = matrix.c0
            results.variable_values = {}
            results.duals = {}
            results.message = 'The instance has no variables'
            results.wall_time = timer.toc(None)
            return results

        mip = bool(matrix.integrality.any())
        status, message, x, fun, duals = self._solve(
            matrix, sign, mip, config, config.presolve
        )
        tc = _termination_condition(status, message)
        if tc is TerminationCondition.infeasibleOrUnbounded and config.presolve:
            logger.info(
                "Solver '%s' could not distinguish infeasible from unbounded; "
                "solving again without presolve",
                self.name,
            )
            status, message, x, fun, duals = self._solve(
                matrix, sign, mip, config, False
            )
            tc = _termination_condition(status, message)
        if tc in (
            TerminationCondition.error,
            TerminationCondition.infeasibleOrUnbounded,
        ):
            raise ApplicationError(
                "Solver '%s' failed (status %s): %s" % (self.name, status, message)
            )

        results.termination_condition = tc
        results.message = message
        if x is not None:
            if tc is TerminationCondition.convergenceCriteriaSatisfied:
                results.solution_status = SolutionStatus.optimal
            else:
                results.solution_status = SolutionStatus.feasible
            results.objective_value = sign * fun + matrix.c0
            results.variable_values = instance.map_values(
                [
                    round(float(v)) if col.is_integer() else float(v)
                    for v, col in zip(x, instance.columns)
                ]
            )
            if duals is not None:
                results.duals = {
                    row.label: sign * float(d) for row, d in zip(instance.rows, duals)
                }
        results.wall_time = timer.toc(None)
        logger.info(
            "Solver '%s' finished: %s (%s)", self.name, tc.name, results.status
        )
        return results

    def _options(self, config, presolve):
        options = {'disp': config.tee, 'presolve': presolve}
        if config.time_limit is not None:
            options['time_limit'] = config.time_limit
        return options

    def _solve(self, matrix, sign, mip, config, presolve):
        if mip:
            return self._solve_milp(matrix, sign, config, presolve)
        return self._solve_lp(matrix, sign, config, presolve)

    def _solve_milp(self, matrix, sign, config, presolve):
        options = self._options(config, presolve)
        if config.node_limit is not None:
            options['node_limit'] = config.node_limit
        if config.mip_rel_gap is not None:
            options['mip_rel_gap'] = config.mip_rel_gap
        constraints = None
        if matrix.A.shape[0]:
            constraints = optimize.LinearConstraint(
                matrix.A, matrix.row_lb, matrix.row_ub
            )
        res = optimize.milp(
            sign * matrix.c,
            integrality=matrix.integrality,
            bounds=optimize.Bounds(matrix.col_lb, matrix.col_ub),
            constraints=constraints,
            options=options,
        )
        return res.status, res.message, res.x, res.fun, None

    def _solve_lp(self, matrix, sign, config, presolve):
        A = matrix.A
        row_lb = matrix.row_lb
        row_ub = matrix.row_ub
        eq = row_lb == row_ub
        ub_rows = np.flatnonzero(~eq & np.isfinite(row_ub))
        lb_rows = np.flatnonzero(~eq & np.isfinite(row_lb))
        eq_rows = np.flatnonzero(eq)

        A_ub = b_ub = A_eq = b_eq = None
        if len(ub_rows) or len(lb_rows):
            A_ub = scipy.sparse.vstack([A[ub_rows], -A[lb_rows]]).tocsr()
            b_ub = np.concatenate([row_ub[ub_rows], -row_lb[lb_rows]])
        if len(eq_rows):
            A_eq = A[eq_rows]
            b_eq = row_lb[eq_rows]
        bounds = [
            (None if lb == -np.inf else lb, None if ub == np.inf else ub)
            for lb, ub in zip(matrix.col_lb, matrix.col_ub)
        ]
        res = optimize.linprog(
            sign * matrix.c,
            A_ub=A_ub,
            b_ub=b_ub,
            A_eq=A_eq,
            b_eq=b_eq,
            bounds=bounds,
            method='highs',
            options=self._options(config, presolve),
        )

        duals = None
        if res.status == 0:
            duals = np.zeros(A.shape[0])
            if A_eq is not None:
                duals[eq_rows] = res.eqlin.marginals
            if A_ub is not None:
                marginals = res.ineqlin.marginals
                n_ub = len(ub_rows)
                duals[ub_rows] += marginals[:n_ub]
                duals[lb_rows] -= marginals[n_ub:]
        return res.status, res.message, res.x, res.fun, duals
