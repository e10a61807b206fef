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

import json
import os
import tempfile
from contextlib import redirect_stderr, redirect_stdout
from io import StringIO

import yaml

import amlgen.common.unittest as unittest
from parameterized import parameterized

from amlgen.scripting.driver import main
from amlgen.scripting.parser import get_parser, subparsers

currdir = os.path.dirname(os.path.abspath(__file__))
exdir = os.path.normpath(os.path.join(currdir, '..', '..', '..', 'examples'))
tsp_mod = os.path.join(exdir, 'tsp', 'tsp.mod')
tsp_dat = os.path.join(exdir, 'tsp', 'tsp.dat')


def run(*args):
    OUT = StringIO()
    ERR = StringIO()
    with redirect_stdout(OUT), redirect_stderr(ERR):
        rc = main(list(args))
    return rc, OUT.getvalue(), ERR.getvalue()


class TestParser(unittest.TestCase):
    def test_subcommands(self):
        self.assertEqual(sorted(subparsers), ['check', 'solve', 'write'])

    def test_defaults(self):
        options = get_parser().parse_args(['solve', 'm.mod', '-d', 'a.dat', '-d', 'b.dat'])
        self.assertEqual(options.data, ['a.dat', 'b.dat'])
        self.assertEqual(options.solver, 'highs')
        self.assertEqual(options.workers, 1)
        self.assertTrue(options.presolve)
        self.assertEqual(options.format, 'json')
        options = get_parser().parse_args(['write', 'm.mod', '--numeric-labels'])
        self.assertFalse(options.symbolic)

    @parameterized.expand(
        [
            ('zero_workers', ['check', 'm.mod', '--workers', '0'], 'PositiveInt', "'0'"),
            (
                'fractional_workers',
                ['write', 'm.mod', '--workers', '1.5'],
                'PositiveInt',
                "'1.5'",
            ),
            (
                'negative_time_limit',
                ['solve', 'm.mod', '--time-limit', '-1'],
                'NonNegativeFloat',
                "'-1'",
            ),
            (
                'negative_node_limit',
                ['solve', 'm.mod', '--node-limit', '-2'],
                'NonNegativeInt',
                "'-2'",
            ),
        ]
    )
    def test_invalid_budget(self, name, args, domain, value):
        ERR = StringIO()
        with redirect_stderr(ERR), self.assertRaises(SystemExit) as cm:
            get_parser().parse_args(args)
        self.assertEqual(cm.exception.code, 2)
        self.assertIn('invalid %s value: %s' % (domain, value), ERR.getvalue())

    def test_workers_reach_generator(self):
        options = get_parser().parse_args(['check', 'm.mod', '--workers', '3'])
        self.assertEqual(options.workers, 3)
        rc, out, err = run('check', tsp_mod, '-d', tsp_dat, '--workers', '3')
        self.assertEqual(rc, 0)
        self.assertEqual(json.loads(out)['instance']['rows'], 32)


class TestDriver(unittest.TestCase):
    def test_check(self):
        rc, out, err = run('check', tsp_mod, '-d', tsp_dat, '--labels')
        self.assertEqual(rc, 0)
        report = json.loads(out)
        self.assertEqual(report['status'], 'ok')
        self.assertEqual(
            report['model'],
            {
                'name': 'tsp',
                'sets': 1,
                'params': 2,
                'vars': 2,
                'constraints': 5,
                'objectives': 1,
            },
        )
        self.assertEqual(report['instance']['columns'], 30)
        self.assertEqual(report['instance']['binary_columns'], 25)
        self.assertEqual(report['instance']['rows'], 32)
        self.assertEqual(report['columns'][:2], ['x[1,1]', 'x[1,2]'])
        self.assertEqual(report['rows'][0], 'Leave[i=1]')
        self.assertEqual(report['rows'][-1], 'Subtour[i=5,j=4]')

    def test_check_workers(self):
        rc, out1, err = run('check', tsp_mod, '-d', tsp_dat, '--labels')
        rc, out4, err = run('check', tsp_mod, '-d', tsp_dat, '--labels', '--workers', '4')
        self.assertEqual(rc, 0)
        self.assertEqual(out1, out4)

    def test_check_yaml_output(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            fname = os.path.join(tmpdir, 'report.yml')
            rc, out, err = run(
                'check', tsp_mod, '-d', tsp_dat, '--format', 'yaml', '-o', fname
            )
            self.assertEqual(rc, 0)
            self.assertEqual(out, '')
            with open(fname) as FILE:
                report = yaml.safe_load(FILE)
        self.assertEqual(report['status'], 'ok')
        self.assertEqual(report['instance']['name'], 'tsp')

    def test_write(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            fname = os.path.join(tmpdir, 'tsp.lp')
            rc, out, err = run('write', tsp_mod, '-d', tsp_dat, '-o', fname)
            self.assertEqual(rc, 0)
            with open(fname) as FILE:
                text = FILE.read()
        self.assertTrue(text.startswith('\\* Source amlgen model name=tsp *\\\n'))
        self.assertIn('\nmin \ntour_length:\n', text)
        self.assertIn('\nc_e_Leave(i_1)_:\n', text)
        self.assertIn('\nr_l_Position(i_2)_:\n', text)
        self.assertTrue(text.endswith('\nend\n'))

    def test_write_stdout(self):
        rc, out, err = run('write', tsp_mod, '-d', tsp_dat, '--numeric-labels')
        self.assertEqual(rc, 0)
        self.assertIn('\nc_e_c1_:\n', out)
        self.assertIn('\nbinary\n  x1\n', out)

    @unittest.pytest.mark.solver('highs')
    def test_solve(self):
        rc, out, err = run('solve', tsp_mod, '-d', tsp_dat, '--format', 'yaml')
        self.assertEqual(rc, 0)
        report = yaml.safe_load(out)
        self.assertEqual(report['solver'], 'highs')
        self.assertEqual(report['status'], 'optimal')
        self.assertAlmostEqual(report['objective_value'], 32)
        self.assertEqual(report['instance']['rows'], 32)
        self.assertEqual(len(report['values']), 30)
        self.assertNotIn('duals', report)

    @unittest.pytest.mark.solver('highs')
    def test_solve_infeasible(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            fname = os.path.join(tmpdir, 'infeasible.mod')
            with open(fname, 'w') as FILE:
                FILE.write("var x >= 0;\ns.t. C: x <= -1;\nminimize o: x;\n")
            rc, out, err = run('solve', fname)
        self.assertEqual(rc, 0)
        report = json.loads(out)
        self.assertEqual(report['status'], 'infeasible')
        self.assertIsNone(report['objective_value'])
        self.assertNotIn('values', report)

    def test_syntax_error_diagnostic(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            fname = os.path.join(tmpdir, 'bad.mod')
            with open(fname, 'w') as FILE:
                FILE.write("set S\nparam n;\n")
            rc, out, err = run('check', fname)
        self.assertEqual(rc, 1)
        diag = json.loads(out)
        self.assertEqual(diag['error'], 'ModelSyntaxError')
        self.assertEqual(diag['location'], {'file': fname, 'line': 2, 'column': 1})
        self.assertIn("';'", diag['expected'])

    def test_missing_data_diagnostic(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            fname = os.path.join(tmpdir, 'missing.mod')
            with open(fname, 'w') as FILE:
                FILE.write("var x;\nparam p{1..2};\nminimize o: p[1] * x;\n")
            rc, out, err = run('check', fname, '--format', 'yaml')
        self.assertEqual(rc, 1)
        diag = yaml.safe_load(out)
        self.assertEqual(diag['error'], 'MissingParameterValueError')
        self.assertIn('no value for p', diag['message'])
        self.assertEqual(diag['location']['line'], 2)

    def test_missing_file(self):
        rc, out, err = run('check', os.path.join(currdir, 'no_such_model.mod'))
        self.assertEqual(rc, 1)
        diag = json.loads(out)
        self.assertEqual(diag['error'], 'FileNotFoundError')
        self.assertIsNone(diag['location'])

    def test_report_timing(self):
        rc, out, err = run('check', tsp_mod, '-d', tsp_dat, '--report-timing')
        self.assertEqual(rc, 0)
        self.assertIn('Generated 30 columns', err)
        self.assertIn('Generated 32 rows', err)


if __name__ == '__main__':
    unittest.main()
