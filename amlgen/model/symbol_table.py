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

"""Name resolution for parsed models.

:py:class:`SymbolTable` maps every declared name to a
:py:class:`Symbol` (kind, index arity, set dimension and the integer
handle addressing the declaration in the model arena).

:py:func:`compile_declarations` runs the validation pass over a parsed
:py:class:`~amlgen.model.decl.ModelAST`:

1. register every declaration (duplicate statements are rejected);
2. order set and parameter definitions by their dependencies, rejecting
   cycles;
3. rewrite every expression so that names become resolved references,
   checking index arities and set dimensions along the way.
"""

import logging

from amlgen.common.errors import (
    UnknownSymbolError,
    DuplicateSymbolError,
    CyclicDefinitionError,
    ShapeMismatchError,
    InstanceBuildError,
    NonlinearExpressionError,
)
from amlgen.model import expr as E
from amlgen.model.decl import (
    SetDecl,
    ParamDecl,
    VarDecl,
    ConstraintDecl,
    ObjectiveDecl,
    declaration_kinds,
)

logger = logging.getLogger('amlgen.model')

INFINITY = 'Infinity'

# name -> (minimum, maximum) number of arguments
builtin_functions = {
    'card': (1, 1),
    'abs': (1, 1),
    'floor': (1, 1),
    'ceil': (1, 1),
    'min': (1, None),
    'max': (1, None),
}


class Symbol(object):
    """A declared name"""

    __slots__ = ('name', 'kind', 'arity', 'dimen', 'handle', 'pos')

    def __init__(self, name, kind, arity, dimen=None, handle=None, pos=None):
        self.name = name
        self.kind = kind
        self.arity = arity
        self.dimen = dimen
        self.handle = handle
        self.pos = pos

    def __repr__(self):
        return 'Symbol(%r, %r, arity=%r)' % (self.name, self.kind, self.arity)


def _location(pos, filename=None):
    if pos is None:
        return {'filename': filename}
    return {'lineno': pos[0], 'column': pos[1], 'filename': filename}


class SymbolTable(object):
    """Registry of declared names

    ``declare`` is idempotent for a repeated (kind, arity) and rejects a
    name that is already bound to a different kind or arity.
    """

    def __init__(self, filename=None):
        self._symbols = {}
        self.filename = filename

    def declare(self, name, kind, arity, dimen=None, handle=None, pos=None):
        sym = self._symbols.get(name, None)
        if sym is not None:
            if sym.kind == kind and sym.arity == arity:
                return sym
            raise DuplicateSymbolError(
                "'%s' is already declared as a %s with %s indices; cannot "
                "redeclare it as a %s with %s indices"
                % (name, sym.kind, sym.arity, kind, arity),
                **_location(pos, self.filename)
            )
        sym = self._symbols[name] = Symbol(name, kind, arity, dimen, handle, pos)
        return sym

    def resolve(self, name, pos=None):
        try:
            return self._symbols[name]
        except KeyError:
            raise UnknownSymbolError(
                "'%s' is not declared" % (name,), **_location(pos, self.filename)
            ) from None

    def get(self, name, default=None):
        return self._symbols.get(name, default)

    def __contains__(self, name):
        return name in self._symbols

    def __iter__(self):
        return iter(self._symbols.values())

    def __len__(self):
        return len(self._symbols)


class _Context(object):
    """Where an expression appears (for error messages and var checks)"""

    __slots__ = ('owner', 'allow_vars')

    def __init__(self, owner, allow_vars):
        self.owner = owner
        self.allow_vars = allow_vars

    def constant(self):
        if not self.allow_vars:
            return self
        return _Context(self.owner, False)


class _Compiler(object):
    def __init__(self, ast):
        self.filename = ast.filename
        self.statements = ast.statements
        self.symbols = SymbolTable(ast.filename)
        self.decls = {}
        self.handles = {}
        self.arena = {kind: [] for kind in declaration_kinds.values()}

    def error(self, cls, msg, pos):
        return cls(msg, **_location(pos, self.filename))

    #
    # Pass 1: registration
    #
    def register(self):
        for decl in self.statements:
            kind = declaration_kinds[decl.__class__]
            prev = self.decls.get(decl.name, None)
            if prev is not None:
                raise self.error(
                    DuplicateSymbolError,
                    "'%s' is declared more than once (previous declaration "
                    "as a %s on line %s)"
                    % (decl.name, declaration_kinds[prev.__class__], prev.pos[0]),
                    decl.pos,
                )
            self.decls[decl.name] = decl
            self.handles[decl.name] = len(self.arena[kind])
            self.arena[kind].append(None)

    #
    # Pass 2: dependency ordering of set / param definitions
    #
    def _dependencies(self, decl):
        roots = []
        if decl.__class__ is SetDecl:
            roots = [decl.within, decl.value]
        else:
            roots = [decl.indexing, decl.default, decl.value]
            roots.extend(e for _, e in decl.restrictions)
        ans = []
        for root in roots:
            if root is None:
                continue
            for node in E.iter_nodes(root):
                cls = node.__class__
                if cls is E.Indexing:
                    for entry in node.entries:
                        for dummy in entry.dummies:
                            if dummy in self.decls:
                                raise self.error(
                                    DuplicateSymbolError,
                                    "index '%s' in the definition of '%s' shadows "
                                    "a declared %s"
                                    % (
                                        dummy,
                                        decl.name,
                                        declaration_kinds[
                                            self.decls[dummy].__class__
                                        ],
                                    ),
                                    decl.pos,
                                )
                elif cls is E.Name or cls is E.Subscript:
                    dep = self.decls.get(node.name, None)
                    if dep is not None and dep.__class__ in (SetDecl, ParamDecl):
                        if node.name not in ans:
                            ans.append(node.name)
        return ans

    def order(self):
        """Return set and param declarations in dependency order"""
        ordered = []
        state = {}
        stack = []

        def visit(name):
            mark = state.get(name, None)
            if mark == 'done':
                return
            if mark == 'active':
                cycle = stack[stack.index(name) :] + [name]
                raise self.error(
                    CyclicDefinitionError,
                    "cyclic definition: %s" % (' -> '.join(cycle),),
                    self.decls[name].pos,
                )
            state[name] = 'active'
            stack.append(name)
            for dep in self._dependencies(self.decls[name]):
                visit(dep)
            stack.pop()
            state[name] = 'done'
            ordered.append(self.decls[name])

        for decl in self.statements:
            if decl.__class__ in (SetDecl, ParamDecl):
                visit(decl.name)
        return ordered

    #
    # Pass 3: resolution
    #
    def compile(self):
        self.register()
        for decl in self.order():
            if decl.__class__ is SetDecl:
                self._compile_set(decl)
            else:
                self._compile_param(decl)
        for decl in self.statements:
            cls = decl.__class__
            if cls is VarDecl:
                self._compile_var(decl)
            elif cls is ConstraintDecl:
                self._compile_constraint(decl)
            elif cls is ObjectiveDecl:
                self._compile_objective(decl)
        return self.symbols, self.arena

    def _store(self, kind, decl, arity, dimen=None):
        handle = self.handles[decl.name]
        self.symbols.declare(decl.name, kind, arity, dimen, handle, decl.pos)
        self.arena[kind][handle] = decl

    def _compile_set(self, decl):
        ctx = _Context("set '%s'" % (decl.name,), False)
        within = value = None
        dimen = decl.dimen
        if decl.within is not None:
            within = self.resolve_set(decl.within, (), ctx, decl.pos)
            dimen = self._agree(decl, dimen, self.dimen(within, decl.pos))
        if decl.value is not None:
            value = self.resolve_set(decl.value, (), ctx, decl.pos)
            dimen = self._agree(decl, dimen, self.dimen(value, decl.pos))
        if dimen is None:
            dimen = 1
        decl = decl._replace(dimen=dimen, within=within, value=value)
        self._store('set', decl, 0, dimen)

    def _agree(self, decl, dimen, other):
        if other is None:
            return dimen
        if dimen is not None and dimen != other:
            raise self.error(
                ShapeMismatchError,
                "set '%s' is declared with dimen %s but its definition has "
                "dimen %s" % (decl.name, dimen, other),
                decl.pos,
            )
        return other

    def _compile_param(self, decl):
        ctx = _Context("param '%s'" % (decl.name,), False)
        indexing, scope, arity = self.resolve_header(decl.indexing, ctx, decl.pos)
        decl = decl._replace(
            indexing=indexing,
            restrictions=tuple(
                (op, self.resolve(e, scope, ctx)) for op, e in decl.restrictions
            ),
            default=self.resolve(decl.default, scope, ctx),
            value=self.resolve(decl.value, scope, ctx),
        )
        self._store('param', decl, arity)

    def _compile_var(self, decl):
        ctx = _Context("var '%s'" % (decl.name,), False)
        indexing, scope, arity = self.resolve_header(decl.indexing, ctx, decl.pos)
        decl = decl._replace(
            indexing=indexing,
            bounds=tuple((op, self.resolve(e, scope, ctx)) for op, e in decl.bounds),
        )
        self._store('var', decl, arity)

    def _compile_constraint(self, decl):
        ctx = _Context("constraint '%s'" % (decl.name,), True)
        indexing, scope, arity = self.resolve_header(decl.indexing, ctx, decl.pos)
        decl = decl._replace(
            indexing=indexing,
            lower=self.resolve(decl.lower, scope, ctx),
            body=self.resolve(decl.body, scope, ctx),
            upper=self.resolve(decl.upper, scope, ctx),
        )
        self._store('constraint', decl, arity)

    def _compile_objective(self, decl):
        ctx = _Context("objective '%s'" % (decl.name,), True)
        decl = decl._replace(expr=self.resolve(decl.expr, (), ctx))
        self._store('objective', decl, 0)

    #
    # Expression resolution
    #
    def resolve_header(self, indexing, ctx, pos):
        if indexing is None:
            return None, (), 0
        indexing, scope = self.resolve_indexing(indexing, (), ctx.constant(), pos)
        arity = self.dimen(indexing, pos)
        if arity is None:
            raise self.error(
                ShapeMismatchError,
                "%s: cannot determine the dimension of the index set" % (ctx.owner,),
                pos,
            )
        return indexing, scope, arity

    def resolve_indexing(self, node, scope, ctx, pos):
        """Resolve an Indexing node; return it and the extended scope"""
        entries = []
        for entry in node.entries:
            domain = self.resolve_set(entry.domain, scope, ctx, pos)
            if entry.dummies:
                d = self.dimen(domain, pos)
                if d is not None and d != len(entry.dummies):
                    raise self.error(
                        ShapeMismatchError,
                        "%s: index (%s) has %s component(s) but iterates over "
                        "a set of dimen %s"
                        % (ctx.owner, ','.join(entry.dummies), len(entry.dummies), d),
                        pos,
                    )
                for dummy in entry.dummies:
                    if dummy in scope or dummy in entry.dummies[
                        : entry.dummies.index(dummy)
                    ]:
                        raise self.error(
                            DuplicateSymbolError,
                            "%s: index '%s' is already bound in an enclosing scope"
                            % (ctx.owner, dummy),
                            pos,
                        )
                    if dummy in self.decls or dummy == INFINITY:
                        raise self.error(
                            DuplicateSymbolError,
                            "%s: index '%s' shadows a declared name"
                            % (ctx.owner, dummy),
                            pos,
                        )
                scope = scope + entry.dummies
            entries.append(E.IndexEntry(entry.dummies, domain))
        predicate = None
        if node.predicate is not None:
            predicate = self.resolve(node.predicate, scope, ctx.constant())
        return E.Indexing(tuple(entries), predicate), scope

    def resolve_set(self, node, scope, ctx, pos):
        ans = self.resolve(node, scope, ctx.constant())
        if ans.__class__ not in E.set_node_types:
            raise self.error(
                ShapeMismatchError,
                "%s: expected a set expression, found '%s'"
                % (ctx.owner, E.format_expr(ans)),
                pos,
            )
        return ans

    def resolve(self, node, scope, ctx):
        if node is None:
            return None
        return self._handlers[node.__class__](self, node, scope, ctx)

    def _resolve_leaf(self, node, scope, ctx):
        return node

    def _lookup(self, name, pos, ctx):
        sym = self.symbols.get(name, None)
        if sym is not None:
            if sym.kind in ('constraint', 'objective'):
                raise self.error(
                    InstanceBuildError,
                    "%s: %s '%s' cannot be referenced in an expression"
                    % (ctx.owner, sym.kind, name),
                    pos,
                )
            if sym.kind == 'var' and not ctx.allow_vars:
                self._var_not_allowed(name, pos, ctx)
            return sym
        decl = self.decls.get(name, None)
        if decl is None:
            raise self.error(
                UnknownSymbolError,
                "%s: '%s' is not declared" % (ctx.owner, name),
                pos,
            )
        kind = declaration_kinds[decl.__class__]
        if kind == 'var':
            if ctx.allow_vars:
                raise self.error(
                    UnknownSymbolError,
                    "%s: '%s' is used before it is declared (declaration on "
                    "line %s)" % (ctx.owner, name, decl.pos[0]),
                    pos,
                )
            self._var_not_allowed(name, pos, ctx)
        raise self.error(
            InstanceBuildError,
            "%s: %s '%s' cannot be referenced in an expression"
            % (ctx.owner, kind, name),
            pos,
        )

    def _var_not_allowed(self, name, pos, ctx):
        if ctx.owner.startswith(('constraint', 'objective')):
            raise self.error(
                NonlinearExpressionError,
                "%s: variable '%s' cannot appear in a condition, index, set "
                "or function argument" % (ctx.owner, name),
                pos,
            )
        raise self.error(
            InstanceBuildError,
            "%s: variable '%s' cannot appear in a constant expression"
            % (ctx.owner, name),
            pos,
        )

    def _resolve_name(self, node, scope, ctx):
        if node.name in scope:
            return E.DummyRef(node.name)
        if node.name == INFINITY and node.name not in self.decls:
            return E.Number(float('inf'))
        sym = self._lookup(node.name, node.pos, ctx)
        if sym.kind == 'set':
            return E.SetRef(sym.handle, sym.name)
        self._check_arity(sym, 0, node.pos, ctx)
        if sym.kind == 'param':
            return E.ParamRef(sym.handle, sym.name, (), node.pos)
        return E.VarRef(sym.handle, sym.name, (), node.pos)

    def _resolve_subscript(self, node, scope, ctx):
        if node.name in scope:
            raise self.error(
                ShapeMismatchError,
                "%s: index '%s' cannot be subscripted" % (ctx.owner, node.name),
                node.pos,
            )
        sym = self._lookup(node.name, node.pos, ctx)
        if sym.kind == 'set':
            raise self.error(
                ShapeMismatchError,
                "%s: set '%s' is not indexed" % (ctx.owner, node.name),
                node.pos,
            )
        self._check_arity(sym, len(node.indices), node.pos, ctx)
        indices = tuple(self.resolve(i, scope, ctx.constant()) for i in node.indices)
        for i in indices:
            if i.__class__ in E.set_node_types:
                raise self.error(
                    ShapeMismatchError,
                    "%s: a set cannot be used as an index of '%s'"
                    % (ctx.owner, node.name),
                    node.pos,
                )
        if sym.kind == 'param':
            return E.ParamRef(sym.handle, sym.name, indices, node.pos)
        return E.VarRef(sym.handle, sym.name, indices, node.pos)

    def _check_arity(self, sym, n, pos, ctx):
        if sym.arity != n:
            raise self.error(
                ShapeMismatchError,
                "%s: %s '%s' has %s index position(s) but is referenced with %s"
                % (ctx.owner, sym.kind, sym.name, sym.arity, n),
                pos,
            )

    def _resolve_call(self, node, scope, ctx):
        limits = builtin_functions.get(node.name, None)
        if limits is None:
            raise self.error(
                UnknownSymbolError,
                "%s: unknown function '%s'" % (ctx.owner, node.name),
                node.pos,
            )
        lo, hi = limits
        if len(node.args) < lo or (hi is not None and len(node.args) > hi):
            raise self.error(
                ShapeMismatchError,
                "%s: function '%s' called with %s argument(s)"
                % (ctx.owner, node.name, len(node.args)),
                node.pos,
            )
        if node.name == 'card':
            args = (self.resolve_set(node.args[0], scope, ctx, node.pos),)
        else:
            args = tuple(self.resolve(a, scope, ctx.constant()) for a in node.args)
        return node._replace(args=args)

    def _resolve_unary(self, node, scope, ctx):
        return node._replace(operand=self.resolve(node.operand, scope, ctx))

    def _resolve_binary(self, node, scope, ctx):
        return node._replace(
            left=self.resolve(node.left, scope, ctx),
            right=self.resolve(node.right, scope, ctx),
        )

    def _resolve_constant_binary(self, node, scope, ctx):
        ctx = ctx.constant()
        return node._replace(
            left=self.resolve(node.left, scope, ctx),
            right=self.resolve(node.right, scope, ctx),
        )

    def _resolve_not(self, node, scope, ctx):
        return node._replace(operand=self.resolve(node.operand, scope, ctx.constant()))

    def _resolve_conditional(self, node, scope, ctx):
        return node._replace(
            test=self.resolve(node.test, scope, ctx.constant()),
            then=self.resolve(node.then, scope, ctx),
            orelse=self.resolve(node.orelse, scope, ctx),
        )

    def _resolve_tuple(self, node, scope, ctx):
        return node._replace(
            items=tuple(self.resolve(i, scope, ctx.constant()) for i in node.items)
        )

    def _resolve_member(self, node, scope, ctx):
        ctx = ctx.constant()
        element = self.resolve(node.element, scope, ctx)
        container = self.resolve_set(node.container, scope, ctx, None)
        d = self.dimen(container, None)
        n = len(element.items) if element.__class__ is E.Tuple else 1
        if d is not None and d != n:
            raise ShapeMismatchError(
                "%s: '%s' has %s component(s) but is tested against a set of "
                "dimen %s" % (ctx.owner, E.format_expr(element), n, d),
                filename=self.filename,
            )
        return node._replace(element=element, container=container)

    def _resolve_range(self, node, scope, ctx):
        ctx = ctx.constant()
        return node._replace(
            lo=self.resolve(node.lo, scope, ctx),
            hi=self.resolve(node.hi, scope, ctx),
            by=self.resolve(node.by, scope, ctx),
        )

    def _resolve_setop(self, node, scope, ctx):
        ans = node._replace(
            left=self.resolve_set(node.left, scope, ctx, None),
            right=self.resolve_set(node.right, scope, ctx, None),
        )
        self.dimen(ans, None)
        return ans

    def _resolve_literal(self, node, scope, ctx):
        ans = node._replace(
            items=tuple(self.resolve(i, scope, ctx.constant()) for i in node.items)
        )
        self.dimen(ans, None)
        return ans

    def _resolve_indexing(self, node, scope, ctx):
        return self.resolve_indexing(node, scope, ctx.constant(), None)[0]

    def _resolve_sum(self, node, scope, ctx):
        indexing, inner = self.resolve_indexing(
            node.indexing, scope, ctx.constant(), None
        )
        return node._replace(indexing=indexing, body=self.resolve(node.body, inner, ctx))

    _handlers = {
        E.Number: _resolve_leaf,
        E.String: _resolve_leaf,
        E.Name: _resolve_name,
        E.Subscript: _resolve_subscript,
        E.Call: _resolve_call,
        E.Unary: _resolve_unary,
        E.Binary: _resolve_binary,
        E.Compare: _resolve_constant_binary,
        E.Logical: _resolve_constant_binary,
        E.Not: _resolve_not,
        E.Conditional: _resolve_conditional,
        E.Tuple: _resolve_tuple,
        E.Member: _resolve_member,
        E.RangeSet: _resolve_range,
        E.SetOp: _resolve_setop,
        E.SetLiteral: _resolve_literal,
        E.Indexing: _resolve_indexing,
        E.Sum: _resolve_sum,
    }

    #
    # Static set dimension
    #
    def dimen(self, node, pos):
        """Return the dimension of a resolved set expression (None if unknown)"""
        cls = node.__class__
        if cls is E.SetRef:
            return self.symbols.resolve(node.name).dimen
        if cls is E.RangeSet:
            return 1
        if cls is E.SetLiteral:
            dims = set(
                len(i.items) if i.__class__ is E.Tuple else 1 for i in node.items
            )
            if len(dims) > 1:
                raise self.error(
                    ShapeMismatchError,
                    "set %s mixes members of different dimensions"
                    % (E.format_expr(node),),
                    pos,
                )
            return dims.pop() if dims else None
        if cls is E.Indexing:
            ans = 0
            for entry in node.entries:
                if entry.dummies:
                    ans += len(entry.dummies)
                else:
                    d = self.dimen(entry.domain, pos)
                    if d is None:
                        return None
                    ans += d
            return ans
        if cls is E.SetOp:
            left = self.dimen(node.left, pos)
            right = self.dimen(node.right, pos)
            if node.op == 'cross':
                if left is None or right is None:
                    return None
                return left + right
            if left is not None and right is not None and left != right:
                raise self.error(
                    ShapeMismatchError,
                    "operands of '%s' have different dimensions (%s and %s)"
                    % (node.op, left, right),
                    pos,
                )
            return left if left is not None else right
        raise ShapeMismatchError(
            "'%s' is not a set expression" % (E.format_expr(node),),
            filename=self.filename,
        )


def compile_declarations(ast):
    """Validate and resolve a parsed model.

    Returns the :py:class:`SymbolTable` and the declaration arena: a
    dict mapping each kind ('set', 'param', 'var', 'constraint',
    'objective') to the list of resolved declarations of that kind, in
    declaration order.  A symbol's ``handle`` indexes into its kind's
    list.
    """
    symbols, arena = _Compiler(ast).compile()
    logger.debug(
        "resolved %d symbols (%s)",
        len(symbols),
        ', '.join('%d %ss' % (len(v), k) for k, v in arena.items()),
    )
    return symbols, arena
