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
import os
from unittest import mock

import amlgen.common.unittest as unittest
from parameterized import parameterized
from scipy import optimize

from amlgen.common.log import LoggingIntercept
from amlgen.model import load_model
from amlgen.solvers import (
    SolverFactory,
    SolutionStatus,
    TerminationCondition,
    optimal,
    infeasible,
    unbounded,
    time_limit,
)
from amlgen.solvers.highs import Highs, _termination_condition

currdir = os.path.dirname(os.path.abspath(__file__))
exdir = os.path.normpath(
    os.path.join(currdir, '..', '..', '..', 'examples')
)

supply_chain_data = """
set products := A B;
set plants := P1;
set customers := North;
param n_months := 1;
param price := A 30 B 25;
param demand := A 1 North 100  B 1 North 100;
param capacity := P1 1 500;
param prod_cost := A P1 10  B P1 8;
param hold_cost := A 1 B 0.5;
param ship_cost := P1 North 2;
"""

routing_data = """
param n := 3;
param dist :  1   2   3 :=
         1    0  10  10
         2   10   0  10
         3   10  10   0 ;
"""

# A dense 0-1 multi-knapsack that HiGHS cannot close at the root node
knapsack_model = """
set R := 1..100;
set J := 1..100;
param w{i in R, j in J} := i * j * 0.7548776662 + i * 0.569840291 + j * 0.6180339887;
param a{i in R, j in J} := floor(5 * (w[i,j] - floor(w[i,j])));
var x{J} binary;
s.t. Cap{i in R}: sum{j in J} a[i,j] * x[j] <= 25;
maximize packed: sum{j in J} x[j];
"""


class TestSolverFactory(unittest.TestCase):
    def test_registered(self):
        self.assertIn('highs', SolverFactory)
        self.assertIn('highs', list(SolverFactory))
        self.assertIs(SolverFactory.get_class('highs'), Highs)
        self.assertIn('HiGHS', SolverFactory.doc('highs'))

    def test_create(self):
        opt = SolverFactory('highs', time_limit=5)
        self.assertIsInstance(opt, Highs)
        self.assertEqual(opt.name, 'highs')
        self.assertEqual(opt.config.time_limit, 5)
        self.assertFalse(opt.config.tee)

    def test_unknown(self):
        self.assertIsNone(SolverFactory('nosuchsolver'))
        with self.assertRaisesRegex(ValueError, "Unknown solver: 'nosuchsolver'"):
            SolverFactory('nosuchsolver', exception=True)

    def test_bad_option(self):
        with self.assertRaises(ValueError):
            SolverFactory('highs', time_limit=-1)
        with self.assertRaises(ValueError):
            SolverFactory('highs', no_such_option=1)

    def test_availability(self):
        opt = SolverFactory('highs')
        self.assertTrue(opt.available())
        self.assertGreaterEqual(opt.version(), (1, 9))
        self.assertFalse(Highs.Availability.BadVersion)
        self.assertEqual(str(Highs.Availability.FullLicense), 'FullLicense')


class TestTerminationCondition(unittest.TestCase):
    @parameterized.expand(
        [
            (
                'optimal',
                0,
                'Optimization terminated successfully. (HiGHS Status 7: Optimal)',
                TerminationCondition.convergenceCriteriaSatisfied,
            ),
            (
                'time_limit',
                1,
                'Time limit reached. (HiGHS Status 13: Reached time limit)',
                TerminationCondition.maxTimeLimit,
            ),
            (
                'node_limit',
                1,
                'Iteration limit reached. (HiGHS Status 14: Reached iteration limit)',
                TerminationCondition.iterationLimit,
            ),
            (
                'infeasible',
                2,
                'The problem is infeasible. (HiGHS Status 8: Infeasible)',
                TerminationCondition.provenInfeasible,
            ),
            (
                'unbounded',
                3,
                'The problem is unbounded. (HiGHS Status 10: Unbounded)',
                TerminationCondition.unbounded,
            ),
            (
                'infeasible_or_unbounded',
                4,
                'The problem is unbounded or infeasible. (HiGHS Status 9)',
                TerminationCondition.infeasibleOrUnbounded,
            ),
            (
                'unrecognized',
                4,
                'The HiGHS status code was not recognized.',
                TerminationCondition.error,
            ),
        ]
    )
    def test_termination_condition(self, name, status, message, expected):
        self.assertIs(_termination_condition(status, message), expected)


class TestHighsOptions(unittest.TestCase):
    def test_options(self):
        opt = Highs()
        config = opt.config(dict(tee=True, time_limit=2.5))
        self.assertEqual(
            opt._options(config, False),
            {'disp': True, 'presolve': False, 'time_limit': 2.5},
        )
        self.assertEqual(
            opt._options(opt.config(), True), {'disp': False, 'presolve': True}
        )

    def test_limits_reach_milp(self):
        instance = load_model(
            "var x integer >= 0, <= 3;\ns.t. C: x >= 1;\nminimize o: x;"
        ).create_instance()
        answer = mock.Mock(
            status=1,
            message='Time limit reached. (HiGHS Status 13: Reached time limit)',
            x=None,
            fun=None,
        )
        with mock.patch.object(optimize, 'milp', return_value=answer) as milp:
            res = Highs().solve(
                instance, time_limit=0.5, node_limit=1, mip_rel_gap=0.1, presolve=False
            )
        self.assertEqual(
            milp.call_args.kwargs['options'],
            {
                'disp': False,
                'presolve': False,
                'time_limit': 0.5,
                'node_limit': 1,
                'mip_rel_gap': 0.1,
            },
        )
        self.assertEqual(res.termination_condition, TerminationCondition.maxTimeLimit)
        self.assertEqual(res.status, time_limit)
        self.assertEqual(res.solution_status, SolutionStatus.noSolution)
        self.assertIsNone(res.variable_values)

    def test_limits_reach_linprog(self):
        instance = load_model(
            "var x >= 0;\ns.t. C: x >= 1;\nminimize o: x;"
        ).create_instance()
        answer = mock.Mock(
            status=1,
            message='Iteration limit reached. (HiGHS Status 14: Reached iteration limit)',
            x=[1.0],
            fun=1.0,
        )
        with mock.patch.object(optimize, 'linprog', return_value=answer) as linprog:
            res = Highs().solve(instance, time_limit=3)
        self.assertEqual(
            linprog.call_args.kwargs['options'],
            {'disp': False, 'presolve': True, 'time_limit': 3},
        )
        self.assertEqual(res.termination_condition, TerminationCondition.iterationLimit)
        self.assertEqual(res.status, time_limit)
        # a limit stop keeps the incumbent
        self.assertEqual(res.solution_status, SolutionStatus.feasible)
        self.assertEqual(res.variable_values['x', ()], 1.0)
        self.assertIsNone(res.duals)


@unittest.pytest.mark.solver('highs')
class TestHighs(unittest.TestCase):
    def solve(self, model, data=None, **options):
        instance = load_model(model).create_instance(data=data)
        with SolverFactory('highs') as opt:
            return instance, opt.solve(instance, **options)

    def test_lp_with_duals(self):
        inst, res = self.solve(
            "var x >= 0; var y >= 0;\n"
            "s.t. C1: x + y >= 2;\n"
            "s.t. C2: x - y <= 1;\n"
            "minimize o: 3*x + 2*y + 1;"
        )
        self.assertEqual(res.termination_condition, TerminationCondition.convergenceCriteriaSatisfied)
        self.assertEqual(res.solution_status, SolutionStatus.optimal)
        self.assertEqual(res.status, optimal)
        self.assertAlmostEqual(res.objective_value, 5)
        self.assertAlmostEqual(res.variable_values['x', ()], 0)
        self.assertAlmostEqual(res.variable_values['y', ()], 2)
        self.assertAlmostEqual(res.duals['C1'], 2)
        self.assertAlmostEqual(res.duals['C2'], 0)
        self.assertEqual(res.solver_name, 'highs')
        self.assertGreaterEqual(res.wall_time, 0)

    def test_maximize(self):
        inst, res = self.solve(
            "var x >= 0, <= 4; var y >= 0;\n"
            "s.t. C: x + 2*y <= 6;\n"
            "maximize o: x + y;"
        )
        self.assertEqual(res.status, optimal)
        self.assertAlmostEqual(res.objective_value, 5)
        self.assertAlmostEqual(res.variable_values['x', ()], 4)
        self.assertAlmostEqual(res.variable_values['y', ()], 1)
        # the dual is the change in the objective per unit of rhs
        self.assertAlmostEqual(res.duals['C'], 0.5)

    def test_mip(self):
        inst, res = self.solve(
            "var x integer >= 0; var y integer >= 0;\n"
            "s.t. C: 2*x + 2*y <= 7;\n"
            "maximize o: 3*x + 2*y;"
        )
        self.assertEqual(res.status, optimal)
        self.assertAlmostEqual(res.objective_value, 9)
        self.assertEqual(res.variable_values['x', ()], 3)
        self.assertIs(type(res.variable_values['x', ()]), int)
        self.assertIsNone(res.duals)

    def test_node_limit(self):
        inst, res = self.solve(knapsack_model, node_limit=1)
        self.assertEqual(len(inst.rows), 100)
        self.assertIn(
            res.termination_condition,
            (TerminationCondition.maxTimeLimit, TerminationCondition.iterationLimit),
        )
        self.assertEqual(res.status, time_limit)
        self.assertEqual(res.report()['status'], 'time_limit')

    def test_supply_chain_variant(self):
        with open(os.path.join(exdir, 'supply_chain', 'supply_chain.mod')) as FILE:
            model = load_model(FILE.read())
        inst = model.create_instance(data=supply_chain_data)
        for p in 'AB':
            row = inst.find_row('MinDemand[%s,1,North]' % (p,))
            self.assertEqual((row.lb, row.ub), (50, float('inf')))
            row = inst.find_row('MaxDemand[%s,1,North]' % (p,))
            self.assertEqual((row.lb, row.ub), (-float('inf'), 100))
        with SolverFactory('highs') as opt:
            res = opt.solve(inst)
        self.assertEqual(res.status, optimal)

        vals = res.variable_values
        price = {'A': 30, 'B': 25}
        prod_cost = {'A': 10, 'B': 8}
        hold_cost = {'A': 1, 'B': 0.5}
        revenue = sum(price[p] * vals['sales', (p, 1, 'North')] for p in 'AB')
        cost = sum(
            prod_cost[p] * vals['produce', (p, 1, 'P1')]
            + hold_cost[p] * vals['inventory', (p, 1, 'P1')]
            + 2 * vals['ship', (p, 1, 'P1', 'North')]
            for p in 'AB'
        )
        self.assertAlmostEqual(res.objective_value, revenue - cost)
        self.assertAlmostEqual(res.objective_value, 3300)
        for p in 'AB':
            self.assertGreaterEqual(vals['sales', (p, 1, 'North')], 50 - 1e-6)
            self.assertLessEqual(vals['sales', (p, 1, 'North')], 100 + 1e-6)

    def test_routing(self):
        with open(os.path.join(exdir, 'tsp', 'tsp.mod')) as FILE:
            model = load_model(FILE.read())
        inst = model.create_instance(data=routing_data)
        with SolverFactory('highs') as opt:
            res = opt.solve(inst)
        self.assertEqual(res.status, optimal)
        self.assertAlmostEqual(res.objective_value, 30)
        x = {
            index: val
            for (name, index), val in res.variable_values.items()
            if name == 'x'
        }
        for k in (1, 2, 3):
            self.assertEqual(sum(v for (i, j), v in x.items() if i == k), 1)
            self.assertEqual(sum(v for (i, j), v in x.items() if j == k), 1)

    def test_infeasible(self):
        inst, res = self.solve("var x >= 0;\ns.t. C: x <= -1;\nminimize o: x;")
        self.assertEqual(res.status, infeasible)
        self.assertEqual(res.termination_condition, TerminationCondition.provenInfeasible)
        self.assertEqual(res.solution_status, SolutionStatus.noSolution)
        self.assertIsNone(res.objective_value)
        self.assertIsNone(res.variable_values)

    def test_unbounded(self):
        inst, res = self.solve("var x >= 0;\ns.t. C: x >= 1;\nmaximize o: x;")
        self.assertEqual(res.status, unbounded)
        self.assertIsNone(res.variable_values)

    def test_empty_model(self):
        inst, res = self.solve("minimize o: 5;")
        self.assertEqual(res.termination_condition, TerminationCondition.emptyModel)
        self.assertEqual(res.status, optimal)
        self.assertEqual(res.objective_value, 5)
        self.assertEqual(res.variable_values, {})

    def test_solve_logging(self):
        with LoggingIntercept(module='amlgen.solvers', level=logging.INFO) as LOG:
            self.solve("var x >= 1;\nminimize o: x;")
        self.assertIn("Solver 'highs' finished: convergenceCriteriaSatisfied (optimal)", LOG.getvalue())

    def test_report(self):
        inst, res = self.solve(
            "set S := {'a', 'b'};\nvar x{S} >= 1;\nminimize o: sum{s in S} x[s];"
        )
        report = res.report()
        self.assertEqual(report['solver'], 'highs')
        self.assertEqual(report['status'], 'optimal')
        self.assertEqual(report['termination_condition'], 'convergenceCriteriaSatisfied')
        self.assertAlmostEqual(report['objective_value'], 2)
        self.assertEqual(
            [(v['variable'], v['name'], v['index']) for v in report['values']],
            [('x[a]', 'x', ['a']), ('x[b]', 'x', ['b'])],
        )
        self.assertEqual(report['duals'], {})

    def test_example_catalogue(self):
        for name, expected in (('supply_chain', None), ('tsp', 32)):
            model = load_model(filename=os.path.join(exdir, name, name + '.mod'))
            inst = model.create_instance(filename=os.path.join(exdir, name, name + '.dat'))
            with SolverFactory('highs') as opt:
                res = opt.solve(inst)
            self.assertEqual(res.status, optimal)
            if expected is not None:
                self.assertAlmostEqual(res.objective_value, expected)


if __name__ == '__main__':
    unittest.main()
