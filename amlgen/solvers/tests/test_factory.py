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

from amlgen.common.errors import ApplicationError, DeveloperError
from amlgen.solvers.base import SolverBase
from amlgen.solvers.factory import SolverFactoryClass


class _Missing(SolverBase):
    def solve(self, instance, **kwds):
        raise RuntimeError('not reachable')

    def available(self):
        return self.Availability.NotFound

    def version(self):
        return None


class _Found(_Missing):
    def available(self):
        return self.Availability.FullLicense

    def version(self):
        return (1, 0)


class TestSolverFactoryClass(unittest.TestCase):
    def setUp(self):
        self.factory = SolverFactoryClass()
        self.factory.register('missing', doc='Never installed')(_Missing)
        self.factory.register('found')(_Found)

    def test_registry(self):
        self.assertEqual(list(self.factory), ['missing', 'found'])
        self.assertIn('found', self.factory)
        self.assertNotIn('other', self.factory)
        self.assertIs(self.factory.get_class('missing'), _Missing)
        self.assertEqual(self.factory.doc('missing'), 'Never installed')
        self.assertIsNone(self.factory.doc('found'))
        self.assertEqual(_Found.name, 'found')

    def test_create(self):
        opt = self.factory('found', time_limit=2)
        self.assertIsInstance(opt, _Found)
        self.assertEqual(opt.name, 'found')
        self.assertEqual(opt.config.time_limit, 2)
        self.assertIsInstance(self.factory('found', exception=True), _Found)

    def test_unavailable(self):
        # without exception=True the caller checks available() itself
        opt = self.factory('missing')
        self.assertFalse(opt.available())
        with self.assertRaisesRegex(
            ApplicationError, "Solver 'missing' is not available \\(NotFound\\)"
        ):
            self.factory('missing', exception=True)

    def test_unknown(self):
        self.assertIsNone(self.factory('other'))
        with self.assertRaisesRegex(ValueError, "Unknown solver: 'other'"):
            self.factory('other', exception=True)

    def test_register_requires_solver(self):
        with self.assertRaisesRegex(DeveloperError, "must derive from SolverBase"):
            self.factory.register('bad')(object)
        self.assertNotIn('bad', self.factory)

    def test_unregister(self):
        self.factory.unregister('missing')
        self.assertEqual(list(self.factory), ['found'])
        # unknown names are ignored
        self.factory.unregister('missing')


if __name__ == '__main__':
    unittest.main()
