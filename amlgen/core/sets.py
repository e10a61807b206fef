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

"""Concrete (materialized) sets and the set resolver.

Every set value is an ordered collection of unique index tuples (one
dimensional sets hold 1-tuples).  Iteration order is the enumeration
order of the data, or the order the set expression produces: ranges
count from ``lo`` to ``hi``, ``A union B`` lists ``A`` followed by the
new members of ``B``, and products vary their leftmost component
slowest.
"""

import itertools

from amlgen.common.errors import (
    DeveloperError,
    InvalidDataError,
    InvalidRangeError,
    MissingParameterValueError,
    ShapeMismatchError,
)
from amlgen.model import expr as E


class SetValue(object):
    """An immutable, ordered set of index tuples"""

    __slots__ = ('name', 'dimen', '_members', '_lookup')

    def __init__(self, members, dimen=None, name=None):
        self._members = tuple(members)
        self._lookup = frozenset(self._members)
        if len(self._lookup) != len(self._members):
            raise DeveloperError("SetValue members must be unique")
        if dimen is None:
            dimen = len(self._members[0]) if self._members else 1
        self.dimen = dimen
        self.name = name

    @classmethod
    def unique(cls, members, dimen=None, name=None):
        """Build a set from an iterable that may repeat members"""
        seen = set()
        ordered = []
        for m in members:
            if m not in seen:
                seen.add(m)
                ordered.append(m)
        return cls(ordered, dimen, name)

    def __iter__(self):
        return iter(self._members)

    def __len__(self):
        return len(self._members)

    def __contains__(self, value):
        if type(value) is not tuple:
            value = (value,)
        return value in self._lookup

    def __getitem__(self, i):
        return self._members[i]

    def __eq__(self, other):
        if not isinstance(other, SetValue):
            return NotImplemented
        return self._members == other._members

    def __hash__(self):
        return hash(self._members)

    def data(self):
        """Return the members, unwrapping 1-tuples for one-dimensional sets"""
        if self.dimen == 1:
            return [m[0] for m in self._members]
        return list(self._members)

    def __repr__(self):
        return 'SetValue(%s%r)' % (
            '' if self.name is None else self.name + '=',
            self.data(),
        )


def normalize_value(value):
    """Return ``value`` with integral floats converted to int"""
    if type(value) is float and value.is_integer():
        return int(value)
    return value


class SetResolver(object):
    """Evaluate set expressions into :py:class:`SetValue` objects.

    Scalar sub-expressions (range endpoints, literal members and
    predicates) are evaluated by ``evaluator``, which must provide
    ``value(node, bindings)`` and ``truth(node, bindings)``; named sets
    come from the evaluator's bound model.
    """

    def __init__(self, evaluator):
        self.evaluator = evaluator

    def resolve(self, node, bindings):
        try:
            handler = self._handlers[node.__class__]
        except KeyError:
            raise ShapeMismatchError(
                "'%s' is not a set expression" % (E.format_expr(node),)
            ) from None
        return handler(self, node, bindings)

    def _resolve_ref(self, node, bindings):
        return self.evaluator.bound.set_value(node.handle)

    def _resolve_literal(self, node, bindings):
        members = []
        seen = set()
        for item in node.items:
            if item.__class__ is E.Tuple:
                m = tuple(
                    normalize_value(self.evaluator.value(i, bindings))
                    for i in item.items
                )
            else:
                m = (normalize_value(self.evaluator.value(item, bindings)),)
            if m in seen:
                raise InvalidDataError(
                    "duplicate member %s in set %s"
                    % (_format_tuple(m), E.format_expr(node))
                )
            seen.add(m)
            members.append(m)
        return SetValue(members)

    def _range_endpoint(self, node, what, rng, bindings):
        try:
            val = self.evaluator.value(node, bindings)
        except MissingParameterValueError as err:
            raise InvalidRangeError(
                "the %s of range %s is not available: %s"
                % (what, E.format_expr(rng), err.message),
                **_pos(rng.pos)
            ) from err
        if type(val) is float and val.is_integer():
            val = int(val)
        if type(val) is not int:
            raise InvalidRangeError(
                "the %s of range %s must be an integer (got %r)"
                % (what, E.format_expr(rng), val),
                **_pos(rng.pos)
            )
        return val

    def _resolve_range(self, node, bindings):
        lo = self._range_endpoint(node.lo, 'lower bound', node, bindings)
        hi = self._range_endpoint(node.hi, 'upper bound', node, bindings)
        by = 1
        if node.by is not None:
            by = self._range_endpoint(node.by, 'step', node, bindings)
        if by == 0:
            raise InvalidRangeError(
                "range %s has a zero step" % (E.format_expr(node),), **_pos(node.pos)
            )
        if lo == 1 and by > 0 and hi < 1:
            # 1..n counts n items
            raise InvalidRangeError(
                "range %s requires a positive upper bound (got %s)"
                % (E.format_expr(node), hi),
                **_pos(node.pos)
            )
        return SetValue([(i,) for i in range(lo, hi + (1 if by > 0 else -1), by)], 1)

    def _resolve_setop(self, node, bindings):
        set0 = self.resolve(node.left, bindings)
        set1 = self.resolve(node.right, bindings)
        if node.op == 'cross':
            return SetValue(
                (a + b for a, b in itertools.product(set0, set1)),
                set0.dimen + set1.dimen,
            )
        if set0 and set1 and set0.dimen != set1.dimen:
            raise ShapeMismatchError(
                "operands of '%s' have different dimensions (%s and %s)"
                % (node.op, set0.dimen, set1.dimen)
            )
        dimen = set0.dimen if set0 else set1.dimen
        if node.op == 'union':
            ans = itertools.chain(set0, (_ for _ in set1 if _ not in set0))
        elif node.op == 'inter':
            ans = (_ for _ in set0 if _ in set1)
        elif node.op == 'diff':
            ans = (_ for _ in set0 if _ not in set1)
        else:
            ans = itertools.chain(
                (_ for _ in set0 if _ not in set1),
                (_ for _ in set1 if _ not in set0),
            )
        return SetValue(ans, dimen)

    def _resolve_indexing(self, node, bindings):
        members = [key for key, _ in self.iter_indexing(node, bindings)]
        return SetValue.unique(members, dimen=self.key_length(node, bindings))

    _handlers = {
        E.SetRef: _resolve_ref,
        E.SetLiteral: _resolve_literal,
        E.RangeSet: _resolve_range,
        E.SetOp: _resolve_setop,
        E.Indexing: _resolve_indexing,
    }

    def key_length(self, indexing, bindings):
        n = 0
        for entry in indexing.entries:
            if entry.dummies:
                n += len(entry.dummies)
            else:
                n += self.resolve(entry.domain, bindings).dimen
        return n

    def iter_indexing(self, indexing, bindings):
        """Yield ``(key, bindings)`` for every tuple of an index header.

        Entries nest left to right (the leftmost entry varies slowest);
        each entry's domain is resolved under the dummies bound by the
        entries before it.  The predicate is applied to each complete
        tuple.  ``bindings`` is never modified.
        """
        entries = indexing.entries
        predicate = indexing.predicate
        nentries = len(entries)

        def _iter(i, key, bindings):
            if i == nentries:
                if predicate is None or self.evaluator.truth(predicate, bindings):
                    yield key, bindings
                return
            entry = entries[i]
            domain = self.resolve(entry.domain, bindings)
            for member in domain:
                if entry.dummies:
                    if len(member) != len(entry.dummies):
                        raise ShapeMismatchError(
                            "index (%s) has %s component(s) but iterates over "
                            "a set of dimen %s"
                            % (','.join(entry.dummies), len(entry.dummies), len(member))
                        )
                    inner = dict(bindings)
                    inner.update(zip(entry.dummies, member))
                else:
                    inner = bindings
                yield from _iter(i + 1, key + member, inner)

        return _iter(0, (), bindings)

    def labels(self, indexing, bindings=None):
        """Return the label of each position of the header's index tuples.

        Bound dummies label their own position; an anonymous entry over
        a named set uses the set name (``S_1``, ``S_2``, ... for
        multi-dimensional sets), and other anonymous entries use their
        position (``_1``, ``_2``, ...).
        """
        if bindings is None:
            bindings = {}
        ans = []
        for entry in indexing.entries:
            if entry.dummies:
                ans.extend(entry.dummies)
                continue
            domain = entry.domain
            if domain.__class__ is E.SetRef:
                dimen = self.resolve(domain, bindings).dimen
                if dimen == 1:
                    ans.append(domain.name)
                else:
                    ans.extend('%s_%d' % (domain.name, k + 1) for k in range(dimen))
            else:
                dimen = self.resolve(domain, bindings).dimen
                ans.extend('_%d' % (len(ans) + k + 1,) for k in range(dimen))
        return tuple(ans)


def _pos(pos):
    if pos is None:
        return {}
    return {'lineno': pos[0], 'column': pos[1]}


def _format_tuple(m):
    if len(m) == 1:
        return repr(m[0])
    return '(%s)' % (','.join(repr(v) for v in m),)
