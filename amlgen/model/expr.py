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

"""Expression trees for the modeling notation.

Expressions are immutable tuples tagged by their class.  The parser
produces the *raw* node types (names are plain identifiers); the
symbol-table pass rewrites every :py:class:`Name` / :py:class:`Subscript`
into one of the *resolved* node types (:py:class:`DummyRef`,
:py:class:`SetRef`, :py:class:`ParamRef`, :py:class:`VarRef`), so that
evaluation never needs to consult the symbol table.

Walkers dispatch on ``node.__class__`` through handler dictionaries
rather than through methods on the node classes.
"""

from collections import namedtuple

#
# Leaves
#
Number = namedtuple('Number', ('value',))
String = namedtuple('String', ('value',))
Name = namedtuple('Name', ('name', 'pos'))
Subscript = namedtuple('Subscript', ('name', 'indices', 'pos'))
Call = namedtuple('Call', ('name', 'args', 'pos'))

#
# Arithmetic and logic
#
Unary = namedtuple('Unary', ('op', 'operand'))
Binary = namedtuple('Binary', ('op', 'left', 'right'))
Compare = namedtuple('Compare', ('op', 'left', 'right', 'pos'))
Logical = namedtuple('Logical', ('op', 'left', 'right'))
Not = namedtuple('Not', ('operand',))
Conditional = namedtuple('Conditional', ('test', 'then', 'orelse'))
Tuple = namedtuple('Tuple', ('items',))

#
# Sets and iteration
#
Member = namedtuple('Member', ('element', 'container', 'negate'))
RangeSet = namedtuple('RangeSet', ('lo', 'hi', 'by', 'pos'))
SetOp = namedtuple('SetOp', ('op', 'left', 'right'))
SetLiteral = namedtuple('SetLiteral', ('items',))
IndexEntry = namedtuple('IndexEntry', ('dummies', 'domain'))
Indexing = namedtuple('Indexing', ('entries', 'predicate'))
Sum = namedtuple('Sum', ('indexing', 'body'))

#
# Braces as written, before the parser decides between an indexing
# expression and a literal enumeration
#
Braces = namedtuple('Braces', ('entries', 'predicate', 'pos'))

#
# Resolved references
#
DummyRef = namedtuple('DummyRef', ('name',))
SetRef = namedtuple('SetRef', ('handle', 'name'))
ParamRef = namedtuple('ParamRef', ('handle', 'name', 'indices', 'pos'))
VarRef = namedtuple('VarRef', ('handle', 'name', 'indices', 'pos'))

set_operators = ('union', 'inter', 'diff', 'symdiff', 'cross')
relational_operators = ('=', '!=', '<', '<=', '>', '>=')

# Node types whose value is a set of tuples
set_node_types = (RangeSet, SetOp, SetLiteral, Indexing, SetRef)


def _binding_entry(node):
    """Return the IndexEntry for a ``dummy in domain`` brace entry, or None"""
    if node.__class__ is not Member or node.negate:
        return None
    elem = node.element
    if elem.__class__ is Name:
        return IndexEntry((elem.name,), node.container)
    if elem.__class__ is Tuple and all(i.__class__ is Name for i in elem.items):
        return IndexEntry(tuple(i.name for i in elem.items), node.container)
    return None


def as_indexing(node):
    """Interpret a brace expression as an indexing expression.

    Every ``dummy in domain`` entry binds its dummies; any other entry is
    an anonymous entry iterating over the entry's set.
    """
    entries = []
    for entry in node.entries:
        binding = _binding_entry(entry)
        if binding is None:
            binding = IndexEntry((), entry)
        entries.append(binding)
    return Indexing(tuple(entries), node.predicate)


def as_set_expression(node):
    """Interpret a brace expression in a value context.

    ``{i in S : i > 2}`` is a set builder (an :py:class:`Indexing`);
    ``{1, 2, 3}`` and ``{(1,'a'), (2,'b')}`` are literal enumerations.
    """
    if node.predicate is not None or any(
        _binding_entry(entry) is not None for entry in node.entries
    ):
        return as_indexing(node)
    return SetLiteral(tuple(node.entries))


def iter_children(node):
    """Yield the direct sub-expressions of an expression node"""
    cls = node.__class__
    if cls in _leaf_types:
        return
    if cls is Subscript or cls is ParamRef or cls is VarRef:
        yield from node.indices
    elif cls is Call:
        yield from node.args
    elif cls is Unary or cls is Not:
        yield node.operand
    elif cls in (Binary, Compare, Logical, SetOp):
        yield node.left
        yield node.right
    elif cls is Conditional:
        yield node.test
        yield node.then
        if node.orelse is not None:
            yield node.orelse
    elif cls is Tuple or cls is SetLiteral:
        yield from node.items
    elif cls is Member:
        yield node.element
        yield node.container
    elif cls is RangeSet:
        yield node.lo
        yield node.hi
        if node.by is not None:
            yield node.by
    elif cls is Indexing:
        for entry in node.entries:
            yield entry.domain
        if node.predicate is not None:
            yield node.predicate
    elif cls is Sum:
        yield node.indexing
        yield node.body
    elif cls is Braces:
        yield from node.entries
        if node.predicate is not None:
            yield node.predicate
    else:
        raise TypeError("unknown expression node %s" % (cls.__name__,))


_leaf_types = {Number, String, Name, DummyRef, SetRef}


def iter_nodes(node):
    """Depth-first, pre-order iteration over an expression tree"""
    stack = [node]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(list(iter_children(node))))


def format_expr(node):
    """Render an expression back into (normalized) model notation"""
    return _formatters[node.__class__](node)


def _format_value(value):
    if isinstance(value, str):
        return "'%s'" % (value.replace("'", "''"),)
    if value == float('inf'):
        return 'Infinity'
    if value == float('-inf'):
        return '-Infinity'
    return repr(value)


def _format_indices(name, indices):
    if not indices:
        return name
    return '%s[%s]' % (name, ','.join(format_expr(i) for i in indices))


def _format_indexing(node):
    entries = []
    for entry in node.entries:
        if not entry.dummies:
            entries.append(format_expr(entry.domain))
        elif len(entry.dummies) == 1:
            entries.append('%s in %s' % (entry.dummies[0], format_expr(entry.domain)))
        else:
            entries.append(
                '(%s) in %s' % (','.join(entry.dummies), format_expr(entry.domain))
            )
    ans = ', '.join(entries)
    if node.predicate is not None:
        ans += ' : ' + format_expr(node.predicate)
    return '{%s}' % (ans,)


def _format_range(node):
    ans = '%s..%s' % (format_expr(node.lo), format_expr(node.hi))
    if node.by is not None:
        ans += ' by ' + format_expr(node.by)
    return ans


def _format_conditional(node):
    ans = 'if %s then %s' % (format_expr(node.test), format_expr(node.then))
    if node.orelse is not None:
        ans += ' else ' + format_expr(node.orelse)
    return '(%s)' % (ans,)


_formatters = {
    Number: lambda n: _format_value(n.value),
    String: lambda n: _format_value(n.value),
    Name: lambda n: n.name,
    DummyRef: lambda n: n.name,
    SetRef: lambda n: n.name,
    Subscript: lambda n: _format_indices(n.name, n.indices),
    ParamRef: lambda n: _format_indices(n.name, n.indices),
    VarRef: lambda n: _format_indices(n.name, n.indices),
    Call: lambda n: '%s(%s)' % (n.name, ', '.join(format_expr(a) for a in n.args)),
    Unary: lambda n: '%s%s' % (n.op, format_expr(n.operand)),
    Binary: lambda n: '(%s %s %s)' % (format_expr(n.left), n.op, format_expr(n.right)),
    Compare: lambda n: '%s %s %s' % (format_expr(n.left), n.op, format_expr(n.right)),
    Logical: lambda n: '(%s %s %s)'
    % (format_expr(n.left), n.op, format_expr(n.right)),
    Not: lambda n: 'not %s' % (format_expr(n.operand),),
    Conditional: _format_conditional,
    Tuple: lambda n: '(%s)' % (','.join(format_expr(i) for i in n.items),),
    Member: lambda n: '%s %s %s'
    % (format_expr(n.element), 'not in' if n.negate else 'in', format_expr(n.container)),
    RangeSet: _format_range,
    SetOp: lambda n: '(%s %s %s)' % (format_expr(n.left), n.op, format_expr(n.right)),
    SetLiteral: lambda n: '{%s}' % (', '.join(format_expr(i) for i in n.items),),
    Indexing: _format_indexing,
    Sum: lambda n: 'sum%s %s' % (_format_indexing(n.indexing), format_expr(n.body)),
}
