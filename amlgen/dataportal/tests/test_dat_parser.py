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

from amlgen.common.errors import ModelSyntaxError
import amlgen.dataportal.parse_datacmds as parser


class TestDatParser(unittest.TestCase):
    def test_empty(self):
        self.assertEqual(parser.parse_data_commands(''), [])
        self.assertIsNone(parser.parse_data_commands())
        self.assertIsNotNone(parser.dat_yaccer)

    def test_set(self):
        self.assertEqual(
            parser.parse_data_commands("set S := a b c;"),
            [(1, ['set', 'S', ':=', 'a', 'b', 'c'])],
        )

    def test_param(self):
        self.assertEqual(
            parser.parse_data_commands("\nparam p := 1 2.5 x -3;", lineno=5),
            [(6, ['param', 'p', ':=', 1, 2.5, 'x', -3])],
        )

    def test_tabular_header(self):
        self.assertEqual(
            parser.parse_data_commands("param c (tr) : x y := a 1 2;"),
            [(1, ['param', 'c', '(tr)', ':', 'x', 'y', ':=', 'a', 1, 2])],
        )

    def test_template(self):
        self.assertEqual(
            parser.parse_data_commands("param d := [A,*,*] : n s := 1 10 20;"),
            [(1, ['param', 'd', ':=', '[A,*,*]', ':', 'n', 's', ':=', 1, 10, 20])],
        )

    def test_tuples(self):
        self.assertEqual(
            parser.parse_data_commands("set E := (a,b) (1,c);"),
            [(1, ['set', 'E', ':=', '(', 'a', ',', 'b', ')', '(', 1, ',', 'c', ')'])],
        )

    def test_quoted_strings(self):
        self.assertEqual(
            parser.parse_data_commands("set S := 'a b' \"it\"\"s\";"),
            [(1, ['set', 'S', ':=', '"a b"', '"it"s"'])],
        )

    def test_comments_and_markers(self):
        self.assertEqual(
            parser.parse_data_commands(
                "# header\ndata;\nset S := a; /* a\ncomment */ param p := 3;\nend;\n"
            ),
            [(3, ['set', 'S', ':=', 'a']), (4, ['param', 'p', ':=', 3])],
        )

    def test_unexpected_end(self):
        with self.assertRaisesRegex(
            ModelSyntaxError, "Syntax error in data: unexpected end of input"
        ) as cm:
            parser.parse_data_commands("set S := a")
        self.assertEqual(cm.exception.lineno, 1)

    def test_illegal_character(self):
        with self.assertRaisesRegex(
            ModelSyntaxError, "Illegal character '@' in data"
        ) as cm:
            parser.parse_data_commands("set S := a @;", filename='x.dat')
        self.assertEqual(cm.exception.lineno, 1)
        self.assertEqual(cm.exception.column, 12)
        self.assertEqual(cm.exception.filename, 'x.dat')

    def test_syntax_error(self):
        with self.assertRaisesRegex(
            ModelSyntaxError, "Syntax error in data at token 'COLONEQ' with value ':='"
        ) as cm:
            parser.parse_data_commands("set S := a;\nparam := 1;")
        self.assertEqual(cm.exception.lineno, 2)
        self.assertEqual(cm.exception.column, 7)
        self.assertIn('WORD', cm.exception.expected)

    def test_reuse_after_error(self):
        with self.assertRaises(ModelSyntaxError):
            parser.parse_data_commands("param p := 1")
        self.assertEqual(
            parser.parse_data_commands("param p := 1;"), [(1, ['param', 'p', ':=', 1])]
        )


if __name__ == '__main__':
    unittest.main()
