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

import os
import tempfile

import amlgen.common.unittest as unittest
from parameterized import parameterized

from amlgen.common.errors import ModelSyntaxError
from amlgen.model import expr as E
from amlgen.model.decl import (
    SetDecl,
    ParamDecl,
    VarDecl,
    ConstraintDecl,
    ObjectiveDecl,
    maximize,
    minimize,
)
from amlgen.model.parse_model import parse_model

small_model = """
set S;
param n integer > 0;
set T := 1..n;
param c{i in S, t in T} >= 0, default 0;
var x{S} binary;
var y >= -1, <= 5;
s.t. Cap{t in T}: sum{i in S} c[i,t] * x[i] <= 10;
maximize obj: sum{i in S} x[i];
solve;
end;
"""


class TestParseModel(unittest.TestCase):
    def test_declarations(self):
        ast = parse_model(small_model)
        self.assertEqual(
            [d.__class__ for d in ast.statements],
            [
                SetDecl,
                ParamDecl,
                SetDecl,
                ParamDecl,
                VarDecl,
                VarDecl,
                ConstraintDecl,
                ObjectiveDecl,
            ],
        )
        self.assertEqual(
            [d.name for d in ast.statements],
            ['S', 'n', 'T', 'c', 'x', 'y', 'Cap', 'obj'],
        )
        self.assertIsNone(ast.data)
        self.assertIsNone(ast.filename)

        S = ast.statements[0]
        self.assertIsNone(S.dimen)
        self.assertIsNone(S.value)
        self.assertEqual(S.pos, (2, 1))

        n = ast.statements[1]
        self.assertTrue(n.integer)
        self.assertFalse(n.symbolic)
        self.assertEqual(n.restrictions, (('>', E.Number(0)),))
        self.assertEqual(n.pos, (3, 1))

        T = ast.statements[2]
        self.assertIs(T.value.__class__, E.RangeSet)
        self.assertEqual(E.format_expr(T.value), '1..n')

        c = ast.statements[3]
        self.assertEqual(E.format_expr(c.indexing), '{i in S, t in T}')
        self.assertEqual(c.default, E.Number(0))
        self.assertEqual(c.restrictions, (('>=', E.Number(0)),))

        x = ast.statements[4]
        self.assertTrue(x.binary)
        self.assertFalse(x.integer)
        self.assertEqual(E.format_expr(x.indexing), '{S}')

        y = ast.statements[5]
        self.assertIsNone(y.indexing)
        self.assertEqual(y.bounds, (('>=', E.Number(-1)), ('<=', E.Number(5))))

        cap = ast.statements[6]
        self.assertEqual(cap.sense, '<=')
        self.assertIsNone(cap.lower)
        self.assertEqual(cap.upper, E.Number(10))
        self.assertEqual(E.format_expr(cap.body), 'sum{i in S} (c[i,t] * x[i])')
        self.assertEqual(cap.pos, (8, 6))

        obj = ast.statements[7]
        self.assertEqual(obj.sense, maximize)
        self.assertEqual(E.format_expr(obj.expr), 'sum{i in S} x[i]')

    def test_bare_constraint_and_minimize(self):
        ast = parse_model("var x; var y;\nC: 2*x + y >= 3;\nminimize z: x;")
        con = ast.statements[2]
        self.assertIs(con.__class__, ConstraintDecl)
        self.assertEqual(con.pos, (2, 1))
        self.assertEqual(con.sense, '>=')
        self.assertEqual(E.format_expr(con.body), '((2 * x) + y)')
        self.assertEqual(ast.statements[3].sense, minimize)

    def test_subject_to(self):
        ast = parse_model("var x; subject to C: x = 1;")
        self.assertEqual(ast.statements[1].name, 'C')
        self.assertEqual(ast.statements[1].sense, '=')

    def test_ranged_constraint(self):
        ast = parse_model(
            "var x; var y;\ns.t. R1: 1 <= x + y <= 4;\ns.t. R2: 4 >= x - y >= 1;"
        )
        for con in ast.statements[2:]:
            self.assertEqual(con.sense, 'range')
            self.assertEqual(con.lower, E.Number(1))
            self.assertEqual(con.upper, E.Number(4))
        self.assertEqual(E.format_expr(ast.statements[2].body), '(x + y)')
        self.assertEqual(E.format_expr(ast.statements[3].body), '(x - y)')

    def test_operator_normalization(self):
        ast = parse_model(
            "param p := 2 ** 3;\nparam q := if p > 1 && p < 9 || not p = 0 then 1 else 0;"
        )
        self.assertEqual(ast.statements[0].value, E.Binary('^', E.Number(2), E.Number(3)))
        self.assertEqual(
            E.format_expr(ast.statements[1].value),
            '(if ((p > 1 and p < 9) or not p = 0) then 1 else 0)',
        )

    def test_set_expressions(self):
        ast = parse_model(
            "set A; set B;\n"
            "set U := A union B diff {'z'};\n"
            "set P := A cross B;\n"
            "set L := {(1,'a'), (2,'b')};\n"
            "set F := {i in A : i != 'q'};\n"
            "set E dimen 2 within A cross B;\n"
        )
        U, P, L, F, D = ast.statements[2:]
        self.assertEqual(E.format_expr(U.value), "((A union B) diff {'z'})")
        self.assertEqual(E.format_expr(P.value), '(A cross B)')
        self.assertIs(L.value.__class__, E.SetLiteral)
        self.assertEqual(E.format_expr(L.value), "{(1,'a'), (2,'b')}")
        self.assertIs(F.value.__class__, E.Indexing)
        self.assertEqual(D.dimen, 2)
        self.assertEqual(E.format_expr(D.within), '(A cross B)')

    def test_comments(self):
        ast = parse_model(
            "/* a model\n   with comments */ set S; # trailing\n"
            "# a whole line\nparam p;\n"
        )
        self.assertEqual([d.name for d in ast.statements], ['S', 'p'])
        self.assertEqual(ast.statements[0].pos, (2, 21))
        self.assertEqual(ast.statements[1].pos, (4, 1))

    def test_quoted_strings(self):
        ast = parse_model("set S := {'it''s', \"a\"};")
        self.assertEqual(
            ast.statements[0].value, E.SetLiteral((E.String("it's"), E.String('a')))
        )

    def test_data_section(self):
        ast = parse_model("set S;\ndata;\nset S := a b;\nend;\n")
        self.assertEqual(len(ast.statements), 1)
        self.assertEqual(ast.data.lineno, 2)
        self.assertTrue(ast.data.text.startswith('data;'))
        self.assertIn('set S := a b;', ast.data.text)

    def test_empty_model(self):
        ast = parse_model('')
        self.assertEqual(ast.statements, [])
        self.assertIsNone(ast.data)

    def test_filename(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            fname = os.path.join(tmpdir, 'small.mod')
            with open(fname, 'w') as FILE:
                FILE.write('set S;\n')
            ast = parse_model(filename=fname)
        self.assertEqual(ast.filename, fname)
        self.assertEqual(ast.statements[0].name, 'S')

    def test_bad_arguments(self):
        with self.assertRaisesRegex(ValueError, 'no model text'):
            parse_model()
        with self.assertRaisesRegex(ValueError, 'cannot specify both'):
            parse_model('set S;', filename='model.mod')

    @parameterized.expand(
        [
            ('missing_semi', 'set S\nparam n;', "Syntax error at 'param' 'param'", 2, 1),
            ('bad_token', 'param p := 3 +;', "Syntax error at ';' ';'", 1, 15),
            ('illegal_character', 'param n := 3 $;', "Illegal character '\\$'", 1, 14),
            (
                'strict_relation',
                'var x;\ns.t. C: x < 1;',
                "constraint 'C': strict relation '<' is not allowed",
                2,
                11,
            ),
            (
                'not_a_relation',
                'var x;\ns.t. C: x + 1;',
                "constraint 'C' must be a relation",
                2,
                6,
            ),
            (
                'mixed_range',
                'var x;\ns.t. C: 1 <= x >= 0;',
                'a ranged constraint must be written',
                2,
                11,
            ),
            (
                'bad_var_attribute',
                'var x default 1;',
                "var 'x': attribute 'default' is not valid here",
                1,
                7,
            ),
            (
                'integer_and_binary',
                'var x integer binary;',
                "var 'x' cannot be both integer and binary",
                1,
                1,
            ),
            (
                'repeated_attribute',
                'param p default 1 default 2;',
                "param 'p': attribute 'default' specified more than once",
                1,
                19,
            ),
            ('bad_dimen', 'set S dimen 0;', "set 'S': dimen must be a positive integer", 1, 13),
        ]
    )
    def test_syntax_errors(self, name, text, msg, lineno, column):
        with self.assertRaisesRegex(ModelSyntaxError, msg) as cm:
            parse_model(text)
        self.assertEqual(cm.exception.lineno, lineno)
        self.assertEqual(cm.exception.column, column)
        self.assertIsInstance(cm.exception, SyntaxError)

    def test_expected_tokens(self):
        with self.assertRaises(ModelSyntaxError) as cm:
            parse_model('set S\nparam n;')
        self.assertIn("';'", cm.exception.expected)
        self.assertIn("'within'", cm.exception.expected)
        diag = cm.exception.diagnostic()
        self.assertEqual(diag['error'], 'ModelSyntaxError')
        self.assertEqual(diag['location'], {'file': None, 'line': 2, 'column': 1})
        self.assertEqual(diag['expected'], list(cm.exception.expected))

    def test_unexpected_end(self):
        with self.assertRaisesRegex(
            ModelSyntaxError, 'Syntax error: unexpected end of input'
        ) as cm:
            parse_model('set S')
        self.assertIn("';'", cm.exception.expected)

    def test_reuse_after_error(self):
        with self.assertRaises(ModelSyntaxError):
            parse_model('set S set T;')
        ast = parse_model('set S;\n\nset T;')
        self.assertEqual(ast.statements[1].pos, (3, 1))


if __name__ == '__main__':
    unittest.main()
