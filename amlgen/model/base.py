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

from amlgen.common.timing import TicTocTimer
from amlgen.model.parse_model import parse_model
from amlgen.model.symbol_table import compile_declarations


class Model(object):
    """A parsed and validated model.

    A Model holds the resolved declarations of one model text (and the
    text of its optional ``data;`` section).  It is immutable; binding
    it to data and generating instances never modifies it, so one Model
    may be instantiated for many data sets, concurrently if needed.

    Declarations are stored in an arena: ``arena[kind][handle]`` for
    ``kind`` in ('set', 'param', 'var', 'constraint', 'objective'),
    where ``handle`` is the symbol's integer handle.
    """

    def __init__(self, ast, name=None):
        self.ast = ast
        self.filename = ast.filename
        if name is None:
            if ast.filename:
                name = os.path.splitext(os.path.basename(ast.filename))[0]
            else:
                name = 'unknown'
        self.name = name
        self.symbols, self.arena = compile_declarations(ast)

    def __repr__(self):
        return 'Model(%s)' % (self.name,)

    @property
    def data_section(self):
        """The ``data;`` section embedded in the model text (or None)"""
        return self.ast.data

    def component(self, name):
        """Return the resolved declaration of ``name``"""
        sym = self.symbols.resolve(name)
        return self.arena[sym.kind][sym.handle]

    def component_names(self, kind):
        return [decl.name for decl in self.arena[kind]]

    def load_data(self, filename=None, data=None):
        """
        Collect the data for this model.

        The model's own ``data;`` section is loaded first, then each
        file in ``filename`` (a path or a list of paths), then ``data``
        (a :py:class:`DataPortal` or a string of data commands).
        Conflicting values for the same entry raise InvalidDataError.
        """
        from amlgen.dataportal import DataPortal

        portal = DataPortal(model=self)
        section = self.ast.data
        if section is not None:
            portal.load(data=section.text, filename=self.filename, lineno=section.lineno)
        if filename is not None:
            if isinstance(filename, str):
                filename = [filename]
            for fname in filename:
                portal.load(filename=fname)
        if data is not None:
            if isinstance(data, str):
                portal.load(data=data)
            else:
                portal.merge(data)
        return portal

    def bind(self, filename=None, data=None):
        """Return the :py:class:`BoundModel` of this model and its data"""
        from amlgen.core.bound import BoundModel

        return BoundModel(self, self.load_data(filename, data)).bind()

    def create_instance(self, filename=None, data=None, **options):
        """
        Create a concrete instance of the model.

        Optional:
            filename:   A data file (or list of data files)
            data:       A DataPortal or a string of data commands
            options:    Options of the InstanceGenerator (``workers``,
                        ``skip_trivial_constraints``, ``report_timing``)
        """
        from amlgen.core.instance import InstanceGenerator

        portal = self.load_data(filename, data)
        return InstanceGenerator().build(self, portal, **options)

    def summary(self):
        """Return the number of declarations of each kind"""
        ans = {'name': self.name}
        for kind, decls in self.arena.items():
            ans[kind + 's'] = len(decls)
        return ans


def load_model(data=None, filename=None, name=None, report_timing=False):
    """Parse and validate a model given as text or a file name"""
    timer = TicTocTimer(logger=logging.getLogger('amlgen.timing'))
    ast = parse_model(data=data, filename=filename)
    if report_timing:
        timer.toc('Parsed %d statements', len(ast.statements))
    ans = Model(ast, name=name)
    if report_timing:
        timer.toc('Resolved %d symbols', len(ans.symbols))
    return ans
