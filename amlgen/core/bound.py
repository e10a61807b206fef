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

"""Bind a compiled model to its data.

:py:class:`BoundModel` materializes every set, tabulates every
parameter over its full declared domain and enumerates the index set of
every variable.  Tables are built lazily (so that a definition may use
any set or parameter regardless of declaration order) and
:py:meth:`BoundModel.bind` forces all of them in declaration order;
after that the bound model is read-only.
"""

import logging

from amlgen.common.errors import (
    DeveloperError,
    InvalidDataError,
    MissingParameterValueError,
)
from amlgen.common.log import is_debug_set
from amlgen.common.modeling import NOTSET
from amlgen.core.sets import SetValue, normalize_value
from amlgen.model.expr import format_expr
from amlgen.repn.linear import LinearEvaluator, relational_ops

logger = logging.getLogger('amlgen.core')


def format_index(name, key):
    if not key:
        return name
    return '%s[%s]' % (name, ','.join(repr(k) for k in key))


def _location(decl):
    if decl.pos is None:
        return {}
    return {'lineno': decl.pos[0], 'column': decl.pos[1]}


class BoundModel(object):
    """A model together with the values of all of its sets and parameters"""

    def __init__(self, model, data=None):
        self.model = model
        self.arena = model.arena
        if data is None:
            self._data = {}
            self._default = {}
        else:
            self._data = data.data()
            self._default = data.defaults()
        self._sets = [None] * len(self.arena['set'])
        self._params = [None] * len(self.arena['param'])
        self._vars = [None] * len(self.arena['var'])
        self._active = set()
        self.frozen = False
        self.evaluator = LinearEvaluator(self)

    def _guard(self, kind, handle):
        if self.frozen:
            raise DeveloperError(
                "%s %s accessed after the bound model was frozen"
                % (kind, self.arena[kind][handle].name)
            )
        if (kind, handle) in self._active:
            raise DeveloperError(
                "recursive evaluation of %s %s" % (kind, self.arena[kind][handle].name)
            )
        self._active.add((kind, handle))

    #
    # Sets
    #
    def set_value(self, handle):
        ans = self._sets[handle]
        if ans is None:
            self._guard('set', handle)
            try:
                ans = self._sets[handle] = self._build_set(self.arena['set'][handle])
            finally:
                self._active.discard(('set', handle))
        return ans

    def _build_set(self, decl):
        name = decl.name
        if decl.value is not None:
            members = list(self.evaluator.sets.resolve(decl.value, {}))
        elif name in self._data:
            members = [tuple(normalize_value(v) for v in m) for m in self._data[name]]
        else:
            raise MissingParameterValueError(
                "no data was supplied for set '%s'" % (name,), name=name, **_location(decl)
            )
        for m in members:
            if len(m) != decl.dimen:
                raise InvalidDataError(
                    "member %s of set '%s' has %s component(s); expected %s"
                    % (_format_member(m), name, len(m), decl.dimen),
                    **_location(decl)
                )
        if decl.within is not None:
            within = self.evaluator.sets.resolve(decl.within, {})
            for m in members:
                if m not in within:
                    raise InvalidDataError(
                        "member %s of set '%s' is not in %s"
                        % (_format_member(m), name, format_expr(decl.within)),
                        **_location(decl)
                    )
        ans = SetValue.unique(members, decl.dimen, name)
        if is_debug_set(logger):
            logger.debug("set %s: %d members", name, len(ans))
        return ans

    #
    # Parameters
    #
    def param_table(self, handle):
        ans = self._params[handle]
        if ans is None:
            self._guard('param', handle)
            try:
                ans = self._params[handle] = self._build_param(
                    self.arena['param'][handle]
                )
            finally:
                self._active.discard(('param', handle))
        return ans

    def _iter_header(self, indexing):
        if indexing is None:
            return iter((((), {}),))
        return self.evaluator.sets.iter_indexing(indexing, {})

    def _build_param(self, decl):
        name = decl.name
        data = self._data.get(name, {})
        data_default = self._default.get(name, NOTSET)
        rows = list(self._iter_header(decl.indexing))
        domain = set(key for key, _ in rows)
        for key in data:
            if key not in domain:
                raise InvalidDataError(
                    "data given for %s, which is outside the domain of param '%s'"
                    % (format_index(name, key), name),
                    **_location(decl)
                )
        table = {}
        value = self.evaluator.value
        for key, bindings in rows:
            if key in data:
                val = data[key]
            elif decl.value is not None:
                val = value(decl.value, bindings)
            elif data_default is not NOTSET:
                val = data_default
            elif decl.default is not None:
                val = value(decl.default, bindings)
            else:
                raise MissingParameterValueError(
                    "no value for %s" % (format_index(name, key),),
                    name=name,
                    index=key,
                    **_location(decl)
                )
            val = normalize_value(val)
            self._check_param_value(decl, key, val, bindings)
            table[key] = val
        if is_debug_set(logger):
            logger.debug("param %s: %d entries", name, len(table))
        return table

    def _check_param_value(self, decl, key, val, bindings):
        label = format_index(decl.name, key)
        if val.__class__ is str:
            if not decl.symbolic:
                raise InvalidDataError(
                    "%s = %r: param '%s' is not symbolic and requires a "
                    "numeric value" % (label, val, decl.name),
                    **_location(decl)
                )
        elif decl.binary:
            if val not in (0, 1):
                raise InvalidDataError(
                    "%s = %r: param '%s' is binary" % (label, val, decl.name),
                    **_location(decl)
                )
        elif decl.integer:
            if val.__class__ is not int:
                raise InvalidDataError(
                    "%s = %r: param '%s' is integer" % (label, val, decl.name),
                    **_location(decl)
                )
        for op, e in decl.restrictions:
            bound = self.evaluator.value(e, bindings)
            try:
                ok = relational_ops[op](val, bound)
            except TypeError:
                ok = False
            if not ok:
                raise InvalidDataError(
                    "%s = %r violates the restriction %s %s %r"
                    % (label, val, decl.name, op, bound),
                    **_location(decl)
                )

    def param_value(self, name, key=()):
        """Return one parameter entry by name (for reporting and tests)"""
        sym = self.model.symbols.resolve(name)
        return self.param_table(sym.handle)[tuple(key)]

    #
    # Variables
    #
    def var_index(self, handle):
        ans = self._vars[handle]
        if ans is None:
            self._guard('var', handle)
            try:
                decl = self.arena['var'][handle]
                ans = self._vars[handle] = SetValue.unique(
                    (key for key, _ in self._iter_header(decl.indexing)),
                    name=decl.name,
                )
            finally:
                self._active.discard(('var', handle))
        return ans

    def iter_var(self, handle):
        """Yield ``(key, bindings)`` for every index of a variable"""
        return self._iter_header(self.arena['var'][handle].indexing)

    def iter_constraint(self, handle):
        """Yield ``(key, bindings)`` for every surviving index of a constraint"""
        return self._iter_header(self.arena['constraint'][handle].indexing)

    def bind(self):
        """Materialize every table and freeze the bound model"""
        if self.frozen:
            return self
        for kind, fcn in (
            ('set', self.set_value),
            ('param', self.param_table),
            ('var', self.var_index),
        ):
            for handle in range(len(self.arena[kind])):
                fcn(handle)
        self.frozen = True
        logger.debug(
            "bound %d sets, %d params, %d vars",
            len(self._sets),
            len(self._params),
            len(self._vars),
        )
        return self


def _format_member(m):
    if len(m) == 1:
        return repr(m[0])
    return '(%s)' % (','.join(repr(v) for v in m),)
