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

"""Evaluate resolved expressions into linear forms.

Each handler returns an ``(ExprType, value)`` pair: ``(_CONSTANT, v)``
for a constant (a number, a string for symbolic data, or a bool for
conditions) and ``(_LINEAR, LinearForm)`` when the expression involves
decision variables.  Handlers are dispatched on the node class.
"""

import enum
import math
import operator

from amlgen.common.errors import (
    DeveloperError,
    IndexOutOfDomainError,
    InstanceBuildError,
    NonlinearExpressionError,
)
from amlgen.core.sets import SetResolver, normalize_value
from amlgen.model import expr as E


class ExprType(enum.IntEnum):
    CONSTANT = 0
    LINEAR = 1


_CONSTANT = ExprType.CONSTANT
_LINEAR = ExprType.LINEAR

relational_ops = {
    '=': operator.eq,
    '!=': operator.ne,
    '<': operator.lt,
    '<=': operator.le,
    '>': operator.gt,
    '>=': operator.ge,
}


def _merge_dict(dest_dict, src_dict, mult):
    if not src_dict:
        return
    if mult == 1:
        for vid, coef in src_dict.items():
            if vid in dest_dict:
                dest_dict[vid] += coef
            else:
                dest_dict[vid] = coef
    else:
        for vid, coef in src_dict.items():
            if vid in dest_dict:
                dest_dict[vid] += mult * coef
            else:
                dest_dict[vid] = mult * coef


class LinearForm(object):
    """``constant + sum(coef * var)``

    ``coefficients`` maps a variable instance ``(var handle, index
    tuple)`` to its coefficient.
    """

    __slots__ = ('constant', 'coefficients')

    def __init__(self, constant=0, coefficients=None):
        self.constant = constant
        self.coefficients = {} if coefficients is None else coefficients

    def __str__(self):
        return '%s(const=%r, coefficients=%r)' % (
            self.__class__.__name__,
            self.constant,
            self.coefficients,
        )

    __repr__ = __str__

    def __eq__(self, other):
        if not isinstance(other, LinearForm):
            return NotImplemented
        return (
            self.constant == other.constant
            and self.coefficients == other.coefficients
        )

    def duplicate(self):
        return LinearForm(self.constant, dict(self.coefficients))

    def scale(self, mult):
        self.constant *= mult
        for vid in self.coefficients:
            self.coefficients[vid] *= mult
        return self

    def append(self, other, mult=1):
        """Add ``mult * other`` (a LinearForm or a constant) to this form"""
        if other.__class__ is LinearForm:
            self.constant += mult * other.constant
            _merge_dict(self.coefficients, other.coefficients, mult)
        else:
            self.constant += mult * other
        return self

    def is_constant(self):
        return not any(self.coefficients.values())


def _numeric(visitor, val, node):
    if val.__class__ not in (int, float, bool):
        raise InstanceBuildError(
            "non-numeric value %r used in arithmetic in '%s'"
            % (val, E.format_expr(node))
        )
    return val


#
# Leaves
#


def _handle_constant(visitor, node, bindings):
    return _CONSTANT, node.value


def _handle_dummy(visitor, node, bindings):
    try:
        return _CONSTANT, bindings[node.name]
    except KeyError:
        raise DeveloperError("index '%s' is not bound" % (node.name,)) from None


def _index_key(visitor, node, bindings):
    return tuple(normalize_value(visitor.value(i, bindings)) for i in node.indices)


def _location(node):
    if node.pos is None:
        return {}
    return {'lineno': node.pos[0], 'column': node.pos[1]}


def _handle_param(visitor, node, bindings):
    key = _index_key(visitor, node, bindings)
    table = visitor.bound.param_table(node.handle)
    try:
        return _CONSTANT, table[key]
    except KeyError:
        raise IndexOutOfDomainError(
            "index %s is outside the domain of param '%s'"
            % (_format_index(key), node.name),
            **_location(node)
        ) from None


def _handle_var(visitor, node, bindings):
    key = _index_key(visitor, node, bindings)
    if key not in visitor.bound.var_index(node.handle):
        raise IndexOutOfDomainError(
            "index %s is outside the domain of var '%s'"
            % (_format_index(key), node.name),
            **_location(node)
        )
    return _LINEAR, LinearForm(0, {(node.handle, key): 1})


def _format_index(key):
    return '[%s]' % (','.join(repr(k) for k in key),)


#
# Arithmetic
#


def _handle_unary(visitor, node, bindings):
    _type, arg = visitor.walk(node.operand, bindings)
    if node.op == '+':
        return _type, arg
    if _type is _CONSTANT:
        return _CONSTANT, -_numeric(visitor, arg, node)
    return _LINEAR, arg.scale(-1)


def _handle_sum_like(visitor, node, arg1, arg2):
    mult = 1 if node.op == '+' else -1
    if arg1[0] is _CONSTANT and arg2[0] is _CONSTANT:
        a = _numeric(visitor, arg1[1], node)
        b = _numeric(visitor, arg2[1], node)
        return _CONSTANT, a + mult * b
    if arg1[0] is _CONSTANT:
        ans = LinearForm(_numeric(visitor, arg1[1], node))
    else:
        ans = arg1[1]
    if arg2[0] is _CONSTANT:
        ans.append(_numeric(visitor, arg2[1], node), mult)
    else:
        ans.append(arg2[1], mult)
    return _LINEAR, ans


def _handle_product(visitor, node, arg1, arg2):
    if arg1[0] is _CONSTANT and arg2[0] is _CONSTANT:
        return _CONSTANT, _numeric(visitor, arg1[1], node) * _numeric(
            visitor, arg2[1], node
        )
    if arg1[0] is _CONSTANT:
        return _LINEAR, arg2[1].scale(_numeric(visitor, arg1[1], node))
    if arg2[0] is _CONSTANT:
        return _LINEAR, arg1[1].scale(_numeric(visitor, arg2[1], node))
    raise NonlinearExpressionError(
        "product of two variable terms in '%s'" % (E.format_expr(node),)
    )


def _handle_division(visitor, node, arg1, arg2):
    if arg2[0] is not _CONSTANT:
        raise NonlinearExpressionError(
            "division by a variable term in '%s'" % (E.format_expr(node),)
        )
    divisor = _numeric(visitor, arg2[1], node)
    if not divisor:
        raise InstanceBuildError("division by zero in '%s'" % (E.format_expr(node),))
    if arg1[0] is _CONSTANT:
        return _CONSTANT, _numeric(visitor, arg1[1], node) / divisor
    return _LINEAR, arg1[1].scale(1.0 / divisor)


def _handle_pow(visitor, node, arg1, arg2):
    if arg1[0] is not _CONSTANT or arg2[0] is not _CONSTANT:
        raise NonlinearExpressionError(
            "exponentiation of a variable term in '%s'" % (E.format_expr(node),)
        )
    try:
        ans = _numeric(visitor, arg1[1], node) ** _numeric(visitor, arg2[1], node)
    except (ZeroDivisionError, OverflowError) as err:
        raise InstanceBuildError(
            "cannot evaluate '%s': %s" % (E.format_expr(node), err)
        ) from err
    if ans.__class__ is complex:
        raise InstanceBuildError(
            "'%s' evaluates to the complex number %s" % (E.format_expr(node), ans)
        )
    return _CONSTANT, ans


_binary_handlers = {
    '+': _handle_sum_like,
    '-': _handle_sum_like,
    '*': _handle_product,
    '/': _handle_division,
    '^': _handle_pow,
}


def _handle_binary(visitor, node, bindings):
    arg1 = visitor.walk(node.left, bindings)
    arg2 = visitor.walk(node.right, bindings)
    return _binary_handlers[node.op](visitor, node, arg1, arg2)


#
# Conditions
#


def _handle_compare(visitor, node, bindings):
    a = visitor.value(node.left, bindings)
    b = visitor.value(node.right, bindings)
    try:
        return _CONSTANT, relational_ops[node.op](a, b)
    except TypeError:
        raise InstanceBuildError(
            "cannot compare %r and %r in '%s'" % (a, b, E.format_expr(node)),
            **_location(node)
        ) from None


def _handle_logical(visitor, node, bindings):
    # and / or short-circuit
    left = visitor.truth(node.left, bindings)
    if node.op == 'and':
        if not left:
            return _CONSTANT, False
    elif left:
        return _CONSTANT, True
    return _CONSTANT, visitor.truth(node.right, bindings)


def _handle_not(visitor, node, bindings):
    return _CONSTANT, not visitor.truth(node.operand, bindings)


def _handle_conditional(visitor, node, bindings):
    # Only the selected branch is evaluated
    if visitor.truth(node.test, bindings):
        return visitor.walk(node.then, bindings)
    if node.orelse is None:
        return _CONSTANT, 0
    return visitor.walk(node.orelse, bindings)


def _handle_tuple(visitor, node, bindings):
    return _CONSTANT, tuple(
        normalize_value(visitor.value(i, bindings)) for i in node.items
    )


def _handle_member(visitor, node, bindings):
    element = visitor.value(node.element, bindings)
    if element.__class__ is not tuple:
        element = (normalize_value(element),)
    ans = element in visitor.sets.resolve(node.container, bindings)
    return _CONSTANT, ans != bool(node.negate)


#
# Functions
#


def _handle_call(visitor, node, bindings):
    if node.name == 'card':
        return _CONSTANT, len(visitor.sets.resolve(node.args[0], bindings))
    args = [_numeric(visitor, visitor.value(a, bindings), node) for a in node.args]
    if node.name == 'abs':
        return _CONSTANT, abs(args[0])
    if node.name == 'floor':
        return _CONSTANT, _floor_ceil(math.floor, args[0])
    if node.name == 'ceil':
        return _CONSTANT, _floor_ceil(math.ceil, args[0])
    if node.name == 'min':
        return _CONSTANT, min(args)
    if node.name == 'max':
        return _CONSTANT, max(args)
    raise DeveloperError("unknown function '%s'" % (node.name,))


def _floor_ceil(fcn, val):
    if val.__class__ is float and math.isinf(val):
        return val
    return fcn(val)


#
# Iterated sums
#


def _handle_sum(visitor, node, bindings):
    ans = LinearForm()
    linear = False
    for _, inner in visitor.sets.iter_indexing(node.indexing, bindings):
        _type, arg = visitor.walk(node.body, inner)
        if _type is _CONSTANT:
            ans.append(_numeric(visitor, arg, node.body))
        else:
            linear = True
            ans.append(arg)
    if linear:
        return _LINEAR, ans
    return _CONSTANT, ans.constant


def _handle_set(visitor, node, bindings):
    raise DeveloperError(
        "set expression '%s' used as a value" % (E.format_expr(node),)
    )


class LinearEvaluator(object):
    """Evaluate resolved expressions against a bound model.

    Evaluation is a pure function of the expression, the bindings of
    the index dummies (a dict that is never modified) and the bound
    model's tables, so one evaluator may be shared by several threads
    once the bound model is frozen.
    """

    def __init__(self, bound):
        self.bound = bound
        self.sets = SetResolver(self)

    def walk(self, node, bindings):
        return self._handlers[node.__class__](self, node, bindings)

    def evaluate(self, node, bindings=None):
        """Return the :py:class:`LinearForm` of ``node``"""
        _type, ans = self.walk(node, {} if bindings is None else bindings)
        if _type is _CONSTANT:
            return LinearForm(_numeric(self, ans, node))
        return ans

    def value(self, node, bindings=None):
        """Return the value of an expression that must be constant"""
        _type, ans = self.walk(node, {} if bindings is None else bindings)
        if _type is not _CONSTANT:
            raise NonlinearExpressionError(
                "'%s' must be a constant expression" % (E.format_expr(node),)
            )
        return ans

    def truth(self, node, bindings=None):
        return bool(self.value(node, bindings))

    _handlers = {
        E.Number: _handle_constant,
        E.String: _handle_constant,
        E.DummyRef: _handle_dummy,
        E.ParamRef: _handle_param,
        E.VarRef: _handle_var,
        E.Call: _handle_call,
        E.Unary: _handle_unary,
        E.Binary: _handle_binary,
        E.Compare: _handle_compare,
        E.Logical: _handle_logical,
        E.Not: _handle_not,
        E.Conditional: _handle_conditional,
        E.Tuple: _handle_tuple,
        E.Member: _handle_member,
        E.Sum: _handle_sum,
        E.SetRef: _handle_set,
        E.SetLiteral: _handle_set,
        E.RangeSet: _handle_set,
        E.SetOp: _handle_set,
        E.Indexing: _handle_set,
    }
