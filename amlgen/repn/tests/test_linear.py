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

import amlgen.common.unittest as unittest

from amlgen.common.errors import (
    IndexOutOfDomainError,
    InstanceBuildError,
    NonlinearExpressionError,
)
from amlgen.model import load_model
from amlgen.repn.linear import LinearForm

linear_model = """
set S := 1..3;
param c{s in S} := s * 2;
param z := 0;
param name symbolic := 'a';
param f := abs(-3) + floor(2.7) + ceil(2.1) + min(4, 2, 8) + max(1, 5);
param t := if 1 < 2 and not 3 < 2 then 1 else 0;
param pw := 2 ^ 3 ^ 2;
param mem := if (2, 'a') in {(1, 'a'), (2, 'a')} then 1 else 0;
param half := 3 / 2;
var x{S};
var y;
s.t. Sum: sum{s in S} c[s] * x[s] + 3 >= 0;
s.t. Cond{s in S}: (if s > 1 then x[s - 1] else 5) + y >= 0;
s.t. Lazy: (if z = 0 then 1 else 1 / z) * y >= 0;
s.t. Cancel: x[1] - x[1] + 2 * (y - 1) / 4 >= 0;
s.t. Prod: x[1] * y >= 0;
s.t. Div: 1 / y >= 0;
s.t. DivZero: y / z >= 0;
s.t. Pow: y ^ 2 >= 0;
s.t. OOD: x[4] >= 0;
s.t. Str: name + 1 <= y;
minimize o: y;
"""

X, Y = 0, 1


class TestLinearEvaluator(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.model = load_model(linear_model)
        cls.bound = cls.model.bind()
        cls.ev = cls.bound.evaluator

    def body(self, name):
        return self.model.component(name).body

    def test_constants(self):
        self.assertEqual(self.bound.param_value('c', (3,)), 6)
        self.assertEqual(self.bound.param_value('f'), 15)
        self.assertEqual(self.bound.param_value('t'), 1)
        self.assertEqual(self.bound.param_value('pw'), 512)
        self.assertEqual(self.bound.param_value('mem'), 1)
        self.assertEqual(self.bound.param_value('half'), 1.5)

    def test_sum(self):
        self.assertEqual(
            self.ev.evaluate(self.body('Sum')),
            LinearForm(3, {(X, (1,)): 2, (X, (2,)): 4, (X, (3,)): 6}),
        )

    def test_conditional(self):
        body = self.body('Cond')
        self.assertEqual(
            self.ev.evaluate(body, {'s': 1}), LinearForm(5, {(Y, ()): 1})
        )
        self.assertEqual(
            self.ev.evaluate(body, {'s': 3}),
            LinearForm(0, {(X, (2,)): 1, (Y, ()): 1}),
        )

    def test_conditional_is_lazy(self):
        # the else branch would divide by zero
        self.assertEqual(self.ev.evaluate(self.body('Lazy')), LinearForm(0, {(Y, ()): 1}))

    def test_cancellation(self):
        form = self.ev.evaluate(self.body('Cancel'))
        self.assertEqual(form.constant, -0.5)
        self.assertEqual(form.coefficients, {(X, (1,)): 0, (Y, ()): 0.5})
        self.assertFalse(form.is_constant())

    def test_constant_form(self):
        form = self.ev.evaluate(self.model.component('f').value)
        self.assertEqual(form, LinearForm(15))
        self.assertTrue(form.is_constant())

    def test_value_requires_constant(self):
        with self.assertRaisesRegex(
            NonlinearExpressionError, "'y' must be a constant expression"
        ):
            self.ev.value(self.model.component('o').expr)

    def test_nonlinear(self):
        with self.assertRaisesRegex(
            NonlinearExpressionError, "product of two variable terms in '\\(x\\[1\\] \\* y\\)'"
        ):
            self.ev.evaluate(self.body('Prod'))
        with self.assertRaisesRegex(
            NonlinearExpressionError, "division by a variable term in '\\(1 / y\\)'"
        ):
            self.ev.evaluate(self.body('Div'))
        with self.assertRaisesRegex(
            NonlinearExpressionError, 'exponentiation of a variable term'
        ):
            self.ev.evaluate(self.body('Pow'))

    def test_division_by_zero(self):
        with self.assertRaisesRegex(InstanceBuildError, "division by zero in '\\(y / z\\)'"):
            self.ev.evaluate(self.body('DivZero'))

    def test_out_of_domain(self):
        with self.assertRaisesRegex(
            IndexOutOfDomainError, "index \\[4\\] is outside the domain of var 'x'"
        ) as cm:
            self.ev.evaluate(self.body('OOD'))
        self.assertEqual(cm.exception.lineno, 21)

    def test_non_numeric(self):
        decl = self.model.component('Str')
        with self.assertRaisesRegex(
            InstanceBuildError, "non-numeric value 'a' used in arithmetic"
        ):
            self.ev.evaluate(decl.body)


class TestLinearForm(unittest.TestCase):
    def test_append_scale(self):
        a = LinearForm(1, {'x': 2})
        b = LinearForm(3, {'x': 1, 'y': 4})
        a.append(b, -1)
        self.assertEqual(a, LinearForm(-2, {'x': 1, 'y': -4}))
        a.append(5)
        self.assertEqual(a.constant, 3)
        self.assertEqual(a.scale(2), LinearForm(6, {'x': 2, 'y': -8}))

    def test_duplicate(self):
        a = LinearForm(1, {'x': 2})
        b = a.duplicate()
        b.append(LinearForm(0, {'x': 1}))
        self.assertEqual(a.coefficients, {'x': 2})
        self.assertEqual(b.coefficients, {'x': 3})
        self.assertEqual(str(a), "LinearForm(const=1, coefficients={'x': 2})")


if __name__ == '__main__':
    unittest.main()
