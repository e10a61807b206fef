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

"""Declaration records produced by the model parser.

Each record carries the source position ``(lineno, column)`` of its
declaring keyword so that compilation errors can point back at the
model text.
"""

from collections import namedtuple

SetDecl = namedtuple('SetDecl', ('name', 'dimen', 'within', 'value', 'pos'))

ParamDecl = namedtuple(
    'ParamDecl',
    (
        'name',
        'indexing',
        'integer',
        'binary',
        'symbolic',
        'restrictions',
        'default',
        'value',
        'pos',
    ),
)

VarDecl = namedtuple(
    'VarDecl', ('name', 'indexing', 'integer', 'binary', 'bounds', 'pos')
)

# ``sense`` is one of '=', '<=', '>=' (``lower`` is None) or 'range'
# (``lower <= body <= upper``; for '<=' / '>=' / '=' the row is
# ``body sense upper``)
ConstraintDecl = namedtuple(
    'ConstraintDecl', ('name', 'indexing', 'lower', 'body', 'sense', 'upper', 'pos')
)

ObjectiveDecl = namedtuple('ObjectiveDecl', ('name', 'sense', 'expr', 'pos'))

# The text of a ``data;`` section embedded in the model file, and the
# line it starts on
DataSection = namedtuple('DataSection', ('text', 'lineno'))

ModelAST = namedtuple('ModelAST', ('statements', 'data', 'filename'))

minimize = 'minimize'
maximize = 'maximize'

declaration_kinds = {
    SetDecl: 'set',
    ParamDecl: 'param',
    VarDecl: 'var',
    ConstraintDecl: 'constraint',
    ObjectiveDecl: 'objective',
}
