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

"""Instance generation: from a bound model to rows, columns and a cost row.

Columns are allocated per variable in declaration order and, within a
variable, in index order.  Rows are generated per constraint template
in declaration order and, within a template, in header order (the
leftmost index entry varies slowest).  The layout is therefore a
function of the model and its data only.
"""

import logging
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor

from amlgen.common.config import ConfigDict, ConfigValue, Bool, PositiveInt
from amlgen.common.errors import CompilationError, InstanceBuildError
from amlgen.common.log import is_debug_set
from amlgen.common.timing import TicTocTimer
from amlgen.core.bound import BoundModel
from amlgen.core.label import format_label, parse_label

logger = logging.getLogger('amlgen.core')
timing_logger = logging.getLogger('amlgen.timing')

inf = float('inf')


class Column(object):
    """One decision variable instance"""

    __slots__ = ('name', 'index', 'lb', 'ub', 'domain')

    def __init__(self, name, index, lb, ub, domain):
        self.name = name
        self.index = index
        self.lb = lb
        self.ub = ub
        self.domain = domain

    @property
    def label(self):
        return format_label(self.name, self.index)

    def is_integer(self):
        return self.domain != 'continuous'

    def __repr__(self):
        return 'Column(%s, lb=%r, ub=%r, %s)' % (self.label, self.lb, self.ub, self.domain)


class Row(object):
    """One constraint instance: ``lb <= sum(coef * column) <= ub``

    ``coefficients`` is a tuple of ``(column number, coefficient)``
    pairs ordered by column number.
    """

    __slots__ = ('name', 'index', 'dummies', 'lb', 'ub', 'coefficients')

    def __init__(self, name, index, dummies, lb, ub, coefficients):
        self.name = name
        self.index = index
        self.dummies = dummies
        self.lb = lb
        self.ub = ub
        self.coefficients = coefficients

    @property
    def label(self):
        return format_label(self.name, self.index, self.dummies)

    @property
    def sense(self):
        if self.lb == self.ub:
            return '='
        if self.lb == -inf:
            return '<='
        if self.ub == inf:
            return '>='
        return 'range'

    def __repr__(self):
        return 'Row(%s, lb=%r, ub=%r, %r)' % (
            self.label,
            self.lb,
            self.ub,
            self.coefficients,
        )


class ObjectiveRow(object):
    __slots__ = ('name', 'sense', 'constant', 'coefficients')

    def __init__(self, name, sense, constant, coefficients):
        self.name = name
        self.sense = sense
        self.constant = constant
        self.coefficients = coefficients


MatrixForm = namedtuple(
    'MatrixForm',
    ('A', 'row_lb', 'row_ub', 'col_lb', 'col_ub', 'integrality', 'c', 'c0', 'sense'),
)


class Instance(object):
    """A generated, solver-ready model instance.

    The instance owns its rows and columns; nothing in it refers back to
    the model declarations.
    """

    def __init__(self, name, columns, rows, objective):
        self.name = name
        self.columns = columns
        self.rows = rows
        self.objective = objective
        self._column_map = {
            (col.name, col.index): j for j, col in enumerate(columns)
        }

    def column(self, name, index=()):
        """Return the column number of variable instance ``name[index]``"""
        if index.__class__ is not tuple:
            index = (index,)
        return self._column_map[name, index]

    def find_row(self, label):
        """Return the row with the given label"""
        key = parse_label(label)
        for row in self.rows:
            if (row.name, row.index) == key:
                return row
        raise KeyError(label)

    def rows_of(self, name):
        return [row for row in self.rows if row.name == name]

    @property
    def nnz(self):
        return sum(len(row.coefficients) for row in self.rows)

    def map_values(self, x):
        """Map a column vector onto ``{(var name, index): value}``"""
        return {(col.name, col.index): x[j] for j, col in enumerate(self.columns)}

    def to_matrix(self):
        """Return the instance in array form.

        ``A`` is a ``scipy.sparse.csr_matrix`` with one row per
        constraint instance and one column per variable instance.
        """
        import numpy as np
        import scipy.sparse

        data = []
        indices = []
        indptr = [0]
        for row in self.rows:
            for j, coef in row.coefficients:
                indices.append(j)
                data.append(coef)
            indptr.append(len(indices))
        A = scipy.sparse.csr_matrix(
            (
                np.array(data, dtype=float),
                np.array(indices, dtype=np.int64),
                np.array(indptr, dtype=np.int64),
            ),
            shape=(len(self.rows), len(self.columns)),
        )
        c = np.zeros(len(self.columns))
        for j, coef in self.objective.coefficients:
            c[j] = coef
        return MatrixForm(
            A=A,
            row_lb=np.array([row.lb for row in self.rows], dtype=float),
            row_ub=np.array([row.ub for row in self.rows], dtype=float),
            col_lb=np.array([col.lb for col in self.columns], dtype=float),
            col_ub=np.array([col.ub for col in self.columns], dtype=float),
            integrality=np.array(
                [1 if col.is_integer() else 0 for col in self.columns], dtype=int
            ),
            c=c,
            c0=self.objective.constant,
            sense=self.objective.sense,
        )

    def summary(self):
        """Return the instance dimensions as a dict"""
        return {
            'name': self.name,
            'columns': len(self.columns),
            'integer_columns': sum(1 for c in self.columns if c.domain == 'integer'),
            'binary_columns': sum(1 for c in self.columns if c.domain == 'binary'),
            'rows': len(self.rows),
            'nonzeros': self.nnz,
            'objective': self.objective.name,
            'sense': self.objective.sense,
        }


def _locate(err, decl, filename):
    if err.lineno is None and decl.pos is not None:
        err.lineno, err.column = decl.pos
    if err.filename is None:
        err.filename = filename
    return err


class InstanceGenerator(object):
    """Generate :py:class:`Instance` objects from models and data"""

    CONFIG = ConfigDict('instance_generator')
    CONFIG.declare(
        'workers',
        ConfigValue(
            default=1,
            domain=PositiveInt,
            description='Number of threads generating constraint rows',
            doc="""
            When more than one worker is requested, constraint templates
            are instantiated concurrently; the rows are always merged in
            template declaration order.""",
        ),
    )
    CONFIG.declare(
        'skip_trivial_constraints',
        ConfigValue(
            default=False,
            domain=Bool,
            description='Skip satisfied constraints with no variable terms',
            doc="""
            By default a constraint instance whose variable terms all
            vanish raises InstanceBuildError.  With this option, such
            rows that are trivially satisfied are dropped (and logged at
            DEBUG level); trivially infeasible rows still raise.""",
        ),
    )
    CONFIG.declare(
        'report_timing',
        ConfigValue(
            default=False,
            domain=Bool,
            description='Report the time spent in each generation stage',
        ),
    )

    def __init__(self, **kwds):
        self.config = self.CONFIG(kwds)

    def build(self, model, data=None, **options):
        """Generate the instance of ``model`` for ``data`` (a DataPortal)"""
        config = self.config(options)
        return _InstanceGenerator_impl(config).build(model, data)


class _InstanceGenerator_impl(object):
    def __init__(self, config):
        self.config = config

    def build(self, model, data):
        if self.config.report_timing:
            timer = TicTocTimer(logger=timing_logger)
        else:
            timer = TicTocTimer(ostream=None)
        timer.tic(None)

        self.model = model
        self.filename = model.filename
        arena = model.arena
        bound = BoundModel(model, data).bind()
        timer.toc(
            'Bound %d sets and %d parameters', len(arena['set']), len(arena['param'])
        )

        columns, column_map = self._columns(bound)
        timer.toc('Generated %d columns', len(columns))

        handles = range(len(arena['constraint']))
        workers = self.config.workers
        if workers > 1 and len(handles) > 1:
            # executor.map() returns the batches (and raises the first
            # error) in submission order
            with ThreadPoolExecutor(max_workers=workers) as executor:
                batches = list(
                    executor.map(lambda h: self._rows(bound, h, column_map), handles)
                )
        else:
            batches = [self._rows(bound, h, column_map) for h in handles]
        rows = [row for batch in batches for row in batch]
        timer.toc('Generated %d rows', len(rows))

        objective = self._objective(bound, column_map)
        timer.toc('Generated objective %s', objective.name)

        ans = Instance(model.name, columns, rows, objective)
        timer.toc('Generated instance', delta=False)
        return ans

    def _columns(self, bound):
        columns = []
        column_map = {}
        value = bound.evaluator.value
        for handle, decl in enumerate(self.model.arena['var']):
            if decl.binary:
                domain = 'binary'
                if decl.bounds:
                    logger.warning(
                        "var '%s' is binary: its declared bounds are ignored "
                        "and the bounds [0, 1] are used",
                        decl.name,
                    )
            elif decl.integer:
                domain = 'integer'
            else:
                domain = 'continuous'
            try:
                for key, bindings in bound.iter_var(handle):
                    lb, ub = 0, inf
                    if decl.binary:
                        ub = 1
                    else:
                        for op, e in decl.bounds:
                            val = value(e, bindings)
                            if val.__class__ not in (int, float):
                                raise InstanceBuildError(
                                    "bound %r of %s is not numeric"
                                    % (val, format_label(decl.name, key))
                                )
                            if op == '>=':
                                lb = val
                            elif op == '<=':
                                ub = val
                            else:
                                lb = ub = val
                        if lb > ub:
                            raise InstanceBuildError(
                                "%s has lower bound %s greater than upper bound %s"
                                % (format_label(decl.name, key), lb, ub)
                            )
                    column_map[handle, key] = len(columns)
                    columns.append(Column(decl.name, key, lb, ub, domain))
            except CompilationError as err:
                raise _locate(err, decl, self.filename)
        return columns, column_map

    def _rows(self, bound, handle, column_map):
        decl = self.model.arena['constraint'][handle]
        try:
            return self._generate_rows(bound, decl, handle, column_map)
        except CompilationError as err:
            raise _locate(err, decl, self.filename)

    def _generate_rows(self, bound, decl, handle, column_map):
        ev = bound.evaluator
        skip_trivial = self.config.skip_trivial_constraints
        debug = is_debug_set(logger)
        if decl.indexing is None:
            dummies = None
        else:
            dummies = ev.sets.labels(decl.indexing)
        rows = []
        for key, bindings in bound.iter_constraint(handle):
            if decl.sense == 'range':
                lo = ev.value(decl.lower, bindings)
                form = ev.evaluate(decl.body, bindings)
                hi = ev.value(decl.upper, bindings)
                offset = form.constant
                lb, ub = lo - offset, hi - offset
            else:
                form = ev.evaluate(decl.body, bindings)
                form.append(ev.evaluate(decl.upper, bindings), -1)
                offset = -form.constant
                if decl.sense == '=':
                    lb = ub = offset
                elif decl.sense == '<=':
                    lb, ub = -inf, offset
                else:
                    lb, ub = offset, inf
            coefficients = tuple(
                sorted(
                    (column_map[vid], coef)
                    for vid, coef in form.coefficients.items()
                    if coef
                )
            )
            if not coefficients:
                label = format_label(decl.name, key, dummies)
                satisfied = lb <= 0 <= ub
                if skip_trivial and satisfied:
                    if debug:
                        logger.debug("skipping trivial constraint %s", label)
                    continue
                raise InstanceBuildError(
                    "constraint %s has no variable terms (it is trivially %s)"
                    % (label, 'satisfied' if satisfied else 'infeasible')
                )
            rows.append(Row(decl.name, key, dummies, lb, ub, coefficients))
        if debug:
            logger.debug("constraint %s: %d rows", decl.name, len(rows))
        return rows

    def _objective(self, bound, column_map):
        objectives = self.model.arena['objective']
        if len(objectives) != 1:
            raise InstanceBuildError(
                "the model must declare exactly one objective (found %d%s)"
                % (
                    len(objectives),
                    ': ' + ', '.join(o.name for o in objectives) if objectives else '',
                ),
                filename=self.filename,
            )
        decl = objectives[0]
        try:
            form = bound.evaluator.evaluate(decl.expr, {})
        except CompilationError as err:
            raise _locate(err, decl, self.filename)
        coefficients = tuple(
            sorted(
                (column_map[vid], coef) for vid, coef in form.coefficients.items() if coef
            )
        )
        return ObjectiveRow(decl.name, decl.sense, form.constant, coefficients)
