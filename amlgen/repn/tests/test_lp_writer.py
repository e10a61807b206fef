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
import tempfile
from io import StringIO

import amlgen.common.unittest as unittest

from amlgen.common.log import LoggingIntercept
from amlgen.model import load_model
from amlgen.repn.lp_writer import LPWriter, _Labeler, write_lp

small_model = """
var x >= 0;
var y integer >= 1, <= 5;
var b binary;
s.t. C1: x + 2*y <= 10;
s.t. C2: x - y = 1;
s.t. C3: 1 <= x + b <= 4;
s.t. C4: y >= 2;
maximize obj: 3*x + 2*y + b + 7;
"""

small_lp = r"""\* Source amlgen model name=small *\

max 
obj:
+3 x
+2 y
+1 b
+7 ONE_VAR_CONSTANT

s.t.

c_u_C1_:
+1 x
+2 y
<= 10

c_e_C2_:
+1 x
-1 y
= 1

r_l_C3_:
+1 x
+1 b
>= 1

r_u_C3_:
+1 x
+1 b
<= 4

c_l_C4_:
+1 y
>= 2

c_e_ONE_VAR_CONSTANT:
+1 ONE_VAR_CONSTANT
= 1

bounds
   0 <= x <= +inf
   1 <= y <= 5
   0 <= b <= 1
   1 <= ONE_VAR_CONSTANT <= 1
general
  y
binary
  b
end
"""


class TestLPWriter(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.instance = load_model(small_model, name='small').create_instance()

    def test_write(self):
        OUT = StringIO()
        info = write_lp(self.instance, OUT)
        self.assertEqual(OUT.getvalue(), small_lp)
        self.assertEqual(info.symbol_map['c_u_C1_'], 'C1')
        self.assertEqual(info.symbol_map['r_l_C3_'], 'C3')
        self.assertEqual(info.symbol_map['r_u_C3_'], 'C3')
        self.assertEqual(info.symbol_map['y'], 'y')

    def test_nonsymbolic_labels(self):
        OUT = StringIO()
        info = LPWriter().write(self.instance, OUT, symbolic_solver_labels=False)
        text = OUT.getvalue()
        self.assertIn('max \nobj:\n+3 x1\n+2 x2\n+1 x3\n', text)
        self.assertIn('\nc_u_c1_:\n+1 x1\n+2 x2\n<= 10\n', text)
        self.assertIn('\nr_l_c3_:\n', text)
        self.assertIn('\ngeneral\n  x2\nbinary\n  x3\nend\n', text)
        self.assertEqual(info.symbol_map['x3'], 'b')
        self.assertEqual(info.symbol_map['c_l_c4_'], 'C4')

    def test_indexed_labels(self):
        m = load_model(
            "set P := {'A', 'B'};\nvar make{P} >= 0;\n"
            "s.t. Cap{p in P}: make[p] <= 3;\nminimize cost: sum{p in P} make[p];"
        )
        OUT = StringIO()
        info = write_lp(m.create_instance(), OUT)
        text = OUT.getvalue()
        self.assertIn('min \ncost:\n+1 make(A)\n+1 make(B)\n', text)
        self.assertIn('\nc_u_Cap(p_A)_:\n+1 make(A)\n<= 3\n', text)
        self.assertNotIn('ONE_VAR_CONSTANT', text)
        self.assertEqual(info.symbol_map['make(B)'], 'make[B]')
        self.assertEqual(info.symbol_map['c_u_Cap(p_B)_'], 'Cap[p=B]')

    def test_unreferenced_columns(self):
        m = load_model("var x;\nvar unused;\ns.t. C: x >= 1;\nminimize o: x;")
        OUT = StringIO()
        write_lp(m.create_instance(), OUT)
        self.assertNotIn('unused', OUT.getvalue())

    def test_constant_objective(self):
        m = load_model("var x;\ns.t. C: x >= 1;\nminimize o: 0;")
        OUT = StringIO()
        write_lp(m.create_instance(), OUT)
        self.assertIn('min \no:\n+0 ONE_VAR_CONSTANT\n', OUT.getvalue())

    def test_no_constraints(self):
        m = load_model("var x >= 1;\nminimize o: x;", name='bare')
        OUT = StringIO()
        with LoggingIntercept(module='amlgen.repn') as LOG:
            write_lp(m.create_instance(), OUT)
        self.assertEqual(
            LOG.getvalue(),
            "Instance 'bare' has no constraints; the LP file contains only "
            "the ONE_VAR_CONSTANT row\n",
        )
        self.assertIn(
            '\ns.t.\n\nc_e_ONE_VAR_CONSTANT:\n+1 ONE_VAR_CONSTANT\n= 1\n', OUT.getvalue()
        )
        self.assertIn('\n   1 <= ONE_VAR_CONSTANT <= 1', OUT.getvalue())

    def test_call_writes_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            fname = os.path.join(tmpdir, 'small.lp')
            ans, symbol_map = LPWriter()(self.instance, fname)
            self.assertEqual(ans, fname)
            with open(fname) as FILE:
                self.assertEqual(FILE.read(), small_lp)
        self.assertEqual(symbol_map['c_e_C2_'], 'C2')

    def test_section_timing(self):
        OUT = StringIO()
        with LoggingIntercept(module='amlgen.timing', level=logging.INFO) as LOG:
            write_lp(self.instance, OUT, show_section_timing=True)
        self.assertIn('Objective obj', LOG.getvalue())
        self.assertIn('Constraint C4', LOG.getvalue())
        self.assertIn('Generated LP representation', LOG.getvalue())


class TestLabeler(unittest.TestCase):
    def test_unique_names(self):
        labeler = _Labeler('')
        self.assertEqual(labeler('x[1]'), 'x(1)')
        self.assertEqual(labeler('x[1]'), 'x(1)_1')
        self.assertEqual(labeler('x[1]'), 'x(1)_2')
        self.assertEqual(labeler.symbol_map['x(1)_1'], 'x[1]')

    def test_prefix(self):
        self.assertEqual(_Labeler('v_')('y'), 'v_y')

    def test_source_label(self):
        labeler = _Labeler('')
        self.assertEqual(labeler('r_l_C(i_1)_', 'C[i=1]'), 'r_l_C(i_1)_')
        self.assertEqual(labeler('r_u_C(i_1)_', 'C[i=1]'), 'r_u_C(i_1)_')
        self.assertEqual(
            labeler.symbol_map, {'r_l_C(i_1)_': 'C[i=1]', 'r_u_C(i_1)_': 'C[i=1]'}
        )


if __name__ == '__main__':
    unittest.main()
