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

"""Lexer and LALR parser for the algebraic modeling notation.

The grammar is built with PLY.  :py:func:`parse_model` turns model text
into a :py:class:`~amlgen.model.decl.ModelAST` (a list of declaration
records plus the raw text of an optional trailing ``data;`` section).
No names are resolved here; that is the job of
:py:mod:`amlgen.model.symbol_table`.
"""

__all__ = ['parse_model']

import logging
import threading

import ply.lex as lex
import ply.yacc as yacc

from amlgen.common.errors import ModelSyntaxError
from amlgen.model import expr as E
from amlgen.model.decl import (
    SetDecl,
    ParamDecl,
    VarDecl,
    ConstraintDecl,
    ObjectiveDecl,
    DataSection,
    ModelAST,
    minimize,
    maximize,
)

logger = logging.getLogger('amlgen.model')

## -----------------------------------------------------------
##
## Lexer definitions for tokenizing the input
##
## -----------------------------------------------------------

reserved = {
    'set': 'SET',
    'param': 'PARAM',
    'var': 'VAR',
    'minimize': 'MINIMIZE',
    'maximize': 'MAXIMIZE',
    'solve': 'SOLVE',
    'end': 'END',
    'integer': 'INTEGER',
    'binary': 'BINARY',
    'symbolic': 'SYMBOLIC',
    'in': 'IN',
    'within': 'WITHIN',
    'dimen': 'DIMEN',
    'default': 'DEFAULT',
    'sum': 'SUM',
    'if': 'IF',
    'then': 'THEN',
    'else': 'ELSE',
    'and': 'AND',
    'or': 'OR',
    'not': 'NOT',
    'by': 'BY',
    'union': 'UNION',
    'inter': 'INTER',
    'diff': 'DIFF',
    'symdiff': 'SYMDIFF',
    'cross': 'CROSS',
}

tokens = [
    'ID',
    'NUMBER',
    'STRING',
    'ST',
    'NOTIN',
    'DATASECTION',
    'LBRACE',
    'RBRACE',
    'LBRACKET',
    'RBRACKET',
    'LPAREN',
    'RPAREN',
    'COMMA',
    'SEMI',
    'COLON',
    'COLONEQ',
    'DOTDOT',
    'PLUS',
    'MINUS',
    'TIMES',
    'DIVIDE',
    'POWER',
    'LE',
    'GE',
    'LT',
    'GT',
    'EQ',
    'NE',
] + sorted(set(reserved.values()))

# Ignore space and tab
t_ignore = " \t\r"

t_LBRACE = r"\{"
t_RBRACE = r"\}"
t_LBRACKET = r"\["
t_RBRACKET = r"\]"
t_LPAREN = r"\("
t_RPAREN = r"\)"
t_COMMA = r","
t_SEMI = r";"
t_COLONEQ = r":="
t_COLON = r":"
t_DOTDOT = r"\.\."
t_PLUS = r"\+"
t_MINUS = r"-"
t_POWER = r"\*\*|\^"
t_TIMES = r"\*"
t_DIVIDE = r"/"
t_LE = r"<="
t_GE = r">="
t_NE = r"!=|<>"
t_EQ = r"==|="
t_LT = r"<"
t_GT = r">"
t_AND = r"&&"
t_OR = r"\|\|"
t_NOT = r"!"


#
# Notes on PLY tokenization
#   - token functions (beginning with "t_") are prioritized in the order
#     that they are declared in this module; all function tokens are
#     tried before the string tokens above
#
def t_newline(t):
    r'\n+'
    t.lexer.lineno += len(t.value)


# Discard comments
_re_singleline_comment = r'(?:\#[^\n]*)'
_re_multiline_comment = r'(?:/\*(?:[\n]|.)*?\*/)'


@lex.TOKEN('|'.join([_re_singleline_comment, _re_multiline_comment]))
def t_COMMENT(t):
    t.lexer.lineno += t.value.count('\n')


def t_DATASECTION(t):
    r'data[ \t\r\n]*;(?:.|\n)*'
    t.value = DataSection(t.value, t.lexer.lineno)
    return t


def t_ST(t):
    r's\.t\.|subject\s+to\b'
    t.lexer.lineno += t.value.count('\n')
    return t


def t_NOTIN(t):
    r'not\s+in\b'
    t.lexer.lineno += t.value.count('\n')
    return t


_re_number = r'(?:[0-9]+(?:\.(?!\.)[0-9]*)?|\.[0-9]+)(?:[eE][-+]?[0-9]+)?'


@lex.TOKEN(_re_number)
def t_NUMBER(t):
    if any(c in t.value for c in '.eE'):
        t.value = float(t.value)
    else:
        t.value = int(t.value)
    return t


_re_quoted_str = r'"(?:[^"]|"")*"'


@lex.TOKEN("|".join([_re_quoted_str, _re_quoted_str.replace('"', "'")]))
def t_STRING(t):
    # Replace doubled ("escaped") quotation characters with a single
    # character
    t.lexer.lineno += t.value.count('\n')
    t.value = t.value[1:-1].replace(2 * t.value[0], t.value[0])
    return t


def t_ID(t):
    r'[a-zA-Z_][a-zA-Z0-9_]*'
    t.type = reserved.get(t.value, 'ID')
    return t


class _GrammarError(Exception):
    """Internal error raised from lexer / grammar actions.

    PLY intercepts SyntaxError raised inside grammar actions (it starts
    error recovery), so the actions raise this instead and
    :py:func:`parse_model` converts it into a ModelSyntaxError.
    """

    def __init__(self, msg, lineno=None, column=None, expected=()):
        super().__init__(msg)
        self.lineno = lineno
        self.column = column
        self.expected = expected


def _find_column(lexdata, lexpos):
    return lexpos - lexdata.rfind('\n', 0, lexpos)


# Error handling rule
def t_error(t):
    raise _GrammarError(
        "Illegal character '%s'" % (t.value[0],),
        t.lexer.lineno,
        _find_column(t.lexer.lexdata, t.lexpos),
    )


## -----------------------------------------------------------
##
## Yacc grammar for model statements
##
## -----------------------------------------------------------

precedence = (
    ('nonassoc', 'COLONEQ', 'DEFAULT', 'WITHIN'),
    ('nonassoc', 'IFX'),
    ('nonassoc', 'ELSE'),
    ('left', 'OR'),
    ('left', 'AND'),
    ('right', 'NOT'),
    ('left', 'LT', 'LE', 'EQ', 'NE', 'GE', 'GT', 'IN', 'NOTIN'),
    ('left', 'UNION', 'DIFF', 'SYMDIFF'),
    ('left', 'INTER'),
    ('left', 'CROSS'),
    ('nonassoc', 'DOTDOT'),
    ('nonassoc', 'BY'),
    ('left', 'PLUS', 'MINUS', 'SUM'),
    ('left', 'TIMES', 'DIVIDE'),
    ('right', 'UMINUS'),
    ('right', 'POWER'),
)

_relational = {
    '<=': '<=',
    '>=': '>=',
    '<': '<',
    '>': '>',
    '=': '=',
    '==': '=',
    '!=': '!=',
    '<>': '!=',
}


def _pos(p, n):
    return (p.lineno(n), _find_column(p.lexer.lexdata, p.lexpos(n)))


def p_model(p):
    '''model : statements
             | statements DATASECTION
             | DATASECTION
             | '''
    if len(p) == 1:
        p[0] = ([], None)
    elif len(p) == 3:
        p[0] = (p[1], p[2])
    elif isinstance(p[1], DataSection):
        p[0] = ([], p[1])
    else:
        p[0] = (p[1], None)


def p_statements(p):
    '''statements : statements statement
                  | statement'''
    if len(p) == 3:
        p[0] = p[1]
        if p[2] is not None:
            p[0].append(p[2])
    elif p[1] is None:
        p[0] = []
    else:
        p[0] = [p[1]]


def p_statement_marker(p):
    '''statement : SOLVE SEMI
                 | END SEMI'''
    p[0] = None


def p_statement_set(p):
    '''statement : SET ID attributes SEMI'''
    name, pos = p[2], _pos(p, 1)
    attrs = _check_attributes('set', name, p[3], ('dimen', 'within', ':='))
    dimen = attrs.get('dimen')
    if dimen is not None:
        dimen, dpos = dimen
        if type(dimen) is not int or dimen < 1:
            raise _GrammarError(
                "set '%s': dimen must be a positive integer" % (name,), *dpos
            )
    p[0] = SetDecl(name, dimen, attrs.get('within'), attrs.get(':='), pos)


def p_statement_param(p):
    '''statement : PARAM ID indexing_opt attributes SEMI'''
    name, pos = p[2], _pos(p, 1)
    attrs = _check_attributes(
        'param',
        name,
        p[4],
        ('integer', 'binary', 'symbolic', 'relation', 'default', ':='),
    )
    p[0] = ParamDecl(
        name,
        p[3],
        'integer' in attrs,
        'binary' in attrs,
        'symbolic' in attrs,
        tuple((op, e) for op, e, _ in attrs.get('relation', ())),
        attrs.get('default'),
        attrs.get(':='),
        pos,
    )


def p_statement_var(p):
    '''statement : VAR ID indexing_opt attributes SEMI'''
    name, pos = p[2], _pos(p, 1)
    attrs = _check_attributes(
        'var', name, p[4], ('integer', 'binary', 'relation')
    )
    bounds = tuple(attrs.get('relation', ()))
    for op, _, rpos in bounds:
        if op not in ('<=', '>=', '='):
            raise _GrammarError(
                "var '%s': bound must use '<=', '>=' or '=', not '%s'" % (name, op),
                *rpos,
            )
    if 'integer' in attrs and 'binary' in attrs:
        raise _GrammarError(
            "var '%s' cannot be both integer and binary" % (name,), *pos
        )
    p[0] = VarDecl(
        name,
        p[3],
        'integer' in attrs,
        'binary' in attrs,
        tuple((op, e) for op, e, _ in bounds),
        pos,
    )


def p_statement_constraint(p):
    '''statement : ST ID indexing_opt COLON expr SEMI
                 | ID indexing_opt COLON expr SEMI'''
    if len(p) == 7:
        name, indexing, body, pos = p[2], p[3], p[5], _pos(p, 2)
    else:
        name, indexing, body, pos = p[1], p[2], p[4], _pos(p, 1)
    p[0] = _make_constraint(name, indexing, body, pos)


def p_statement_objective(p):
    '''statement : MINIMIZE ID COLON expr SEMI
                 | MAXIMIZE ID COLON expr SEMI'''
    sense = minimize if p[1] == 'minimize' else maximize
    p[0] = ObjectiveDecl(p[2], sense, p[4], _pos(p, 1))


def p_indexing_opt(p):
    '''indexing_opt : braces
                    | '''
    if len(p) == 2:
        p[0] = E.as_indexing(p[1])
    else:
        p[0] = None


def p_attributes(p):
    '''attributes : attributes attribute
                  | attributes COMMA attribute
                  | '''
    if len(p) == 1:
        p[0] = []
    else:
        p[0] = p[1]
        p[0].append(p[len(p) - 1])


def p_attribute_flag(p):
    '''attribute : INTEGER
                 | BINARY
                 | SYMBOLIC'''
    p[0] = (p[1], True, _pos(p, 1))


def p_attribute_relation(p):
    '''attribute : LE expr
                 | GE expr
                 | LT expr
                 | GT expr
                 | EQ expr
                 | NE expr'''
    p[0] = ('relation', (_relational[p[1]], p[2]), _pos(p, 1))


def p_attribute_value(p):
    '''attribute : DEFAULT expr
                 | COLONEQ expr
                 | WITHIN expr'''
    p[0] = (p[1], p[2], _pos(p, 1))


def p_attribute_dimen(p):
    '''attribute : DIMEN NUMBER'''
    p[0] = ('dimen', (p[2], _pos(p, 2)), _pos(p, 1))


def _check_attributes(kind, name, attributes, allowed):
    ans = {}
    for attr, value, pos in attributes:
        if attr not in allowed:
            if attr == 'relation':
                attr = value[0]
            raise _GrammarError(
                "%s '%s': attribute '%s' is not valid here" % (kind, name, attr), *pos
            )
        if attr == 'relation':
            ans.setdefault(attr, []).append(value + (pos,))
        elif attr in ans:
            raise _GrammarError(
                "%s '%s': attribute '%s' specified more than once" % (kind, name, attr),
                *pos
            )
        else:
            ans[attr] = value
    return ans


def _make_constraint(name, indexing, body, pos):
    if body.__class__ is not E.Compare:
        raise _GrammarError(
            "constraint '%s' must be a relation ('=', '<=' or '>=')" % (name,), *pos
        )
    if body.op not in ('=', '<=', '>='):
        raise _GrammarError(
            "constraint '%s': strict relation '%s' is not allowed" % (name, body.op),
            *body.pos
        )
    inner = body.left
    if inner.__class__ is not E.Compare:
        return ConstraintDecl(name, indexing, None, inner, body.op, body.right, pos)
    if inner.op != body.op or body.op == '=':
        raise _GrammarError(
            "constraint '%s': a ranged constraint must be written "
            "'lo <= body <= hi' or 'hi >= body >= lo'" % (name,),
            *inner.pos
        )
    if body.op == '<=':
        lo, hi = inner.left, body.right
    else:
        lo, hi = body.right, inner.left
    return ConstraintDecl(name, indexing, lo, inner.right, 'range', hi, pos)


def p_expr_binary(p):
    '''expr : expr PLUS expr
            | expr MINUS expr
            | expr TIMES expr
            | expr DIVIDE expr
            | expr POWER expr'''
    op = p[2]
    if op == '**':
        op = '^'
    p[0] = E.Binary(op, p[1], p[3])


def p_expr_unary(p):
    '''expr : MINUS expr %prec UMINUS
            | PLUS expr %prec UMINUS'''
    if p[1] == '+':
        p[0] = p[2]
    elif p[2].__class__ is E.Number:
        p[0] = E.Number(-p[2].value)
    else:
        p[0] = E.Unary('-', p[2])


def p_expr_compare(p):
    '''expr : expr LE expr
            | expr GE expr
            | expr LT expr
            | expr GT expr
            | expr EQ expr
            | expr NE expr'''
    p[0] = E.Compare(_relational[p[2]], p[1], p[3], _pos(p, 2))


def p_expr_logical(p):
    '''expr : expr AND expr
            | expr OR expr'''
    op = 'and' if p[2] in ('and', '&&') else 'or'
    p[0] = E.Logical(op, p[1], p[3])


def p_expr_not(p):
    '''expr : NOT expr'''
    p[0] = E.Not(p[2])


def p_expr_member(p):
    '''expr : expr IN expr
            | expr NOTIN expr'''
    p[0] = E.Member(p[1], _set_operand(p[3]), p[2] != 'in')


def p_expr_setop(p):
    '''expr : expr UNION expr
            | expr INTER expr
            | expr DIFF expr
            | expr SYMDIFF expr
            | expr CROSS expr'''
    p[0] = E.SetOp(p[2], _set_operand(p[1]), _set_operand(p[3]))


def p_expr_range(p):
    '''expr : expr DOTDOT expr
            | expr DOTDOT expr BY expr'''
    by = p[5] if len(p) == 6 else None
    p[0] = E.RangeSet(p[1], p[3], by, _pos(p, 2))


def p_expr_sum(p):
    '''expr : SUM braces expr %prec SUM'''
    p[0] = E.Sum(E.as_indexing(p[2]), p[3])


def p_expr_conditional(p):
    '''expr : IF expr THEN expr %prec IFX
            | IF expr THEN expr ELSE expr'''
    orelse = p[6] if len(p) == 7 else None
    p[0] = E.Conditional(p[2], p[4], orelse)


def p_expr_number(p):
    '''expr : NUMBER'''
    p[0] = E.Number(p[1])


def p_expr_string(p):
    '''expr : STRING'''
    p[0] = E.String(p[1])


def p_expr_name(p):
    '''expr : ID'''
    p[0] = E.Name(p[1], _pos(p, 1))


def p_expr_subscript(p):
    '''expr : ID LBRACKET exprlist RBRACKET'''
    p[0] = E.Subscript(p[1], tuple(p[3]), _pos(p, 1))


def p_expr_call(p):
    '''expr : ID LPAREN exprlist RPAREN'''
    p[0] = E.Call(p[1], tuple(p[3]), _pos(p, 1))


def p_expr_paren(p):
    '''expr : LPAREN expr RPAREN'''
    p[0] = p[2]


def p_expr_tuple(p):
    '''expr : LPAREN expr COMMA exprlist RPAREN'''
    p[0] = E.Tuple((p[2],) + tuple(p[4]))


def p_expr_braces(p):
    '''expr : braces'''
    p[0] = E.as_set_expression(p[1])


def p_braces(p):
    '''braces : LBRACE exprlist RBRACE
              | LBRACE exprlist COLON expr RBRACE
              | LBRACE RBRACE'''
    if len(p) == 3:
        p[0] = E.Braces((), None, _pos(p, 1))
    elif len(p) == 4:
        p[0] = E.Braces(tuple(p[2]), None, _pos(p, 1))
    else:
        p[0] = E.Braces(tuple(p[2]), p[4], _pos(p, 1))


def p_exprlist(p):
    '''exprlist : exprlist COMMA expr
                | expr'''
    if len(p) == 2:
        p[0] = [p[1]]
    else:
        p[0] = p[1]
        p[0].append(p[3])


def _set_operand(node):
    # A brace expression used as a set operand is always a set value
    if node.__class__ is E.Braces:
        return E.as_set_expression(node)
    return node


_token_display = {
    'ID': 'identifier',
    'NUMBER': 'number',
    'STRING': 'string',
    'ST': "'s.t.'",
    'NOTIN': "'not in'",
    'DATASECTION': "'data;'",
    'LBRACE': "'{'",
    'RBRACE': "'}'",
    'LBRACKET': "'['",
    'RBRACKET': "']'",
    'LPAREN': "'('",
    'RPAREN': "')'",
    'COMMA': "','",
    'SEMI': "';'",
    'COLON': "':'",
    'COLONEQ': "':='",
    'DOTDOT': "'..'",
    'PLUS': "'+'",
    'MINUS': "'-'",
    'TIMES': "'*'",
    'DIVIDE': "'/'",
    'POWER': "'^'",
    'LE': "'<='",
    'GE': "'>='",
    'LT': "'<'",
    'GT': "'>'",
    'EQ': "'='",
    'NE': "'!='",
    '$end': 'end of input',
}


def _display(token_type):
    if token_type in _token_display:
        return _token_display[token_type]
    return "'%s'" % (token_type.lower(),)


def p_error(p):
    expected = ()
    state = getattr(_parser, 'state', None)
    if state is not None:
        expected = tuple(sorted(_display(tok) for tok in _parser.action[state]))
    if p is None:
        raise _GrammarError(
            "Syntax error: unexpected end of input", _lexer.lineno, None, expected
        )
    if p.type == 'DATASECTION':
        value = 'data;'
    else:
        value = p.value
    raise _GrammarError(
        "Syntax error at %s '%s'" % (_display(p.type), value),
        p.lineno,
        _find_column(p.lexer.lexdata, p.lexpos),
        expected,
    )


# --------------------------------------------------------------
# the lexer and parser only need to be created once, so have the
# corresponding objects accessible at module scope.
# --------------------------------------------------------------

_lexer = None
_parser = None
_parse_lock = threading.Lock()


def _build():
    global _lexer
    global _parser
    _lexer = lex.lex()
    _parser = yacc.yacc(
        start='model',
        debug=False,
        write_tables=False,
        tabmodule='amlgen_model_parsetab',
        errorlog=yacc.NullLogger(),
    )


def parse_model(data=None, filename=None):
    """Parse model text into a :py:class:`~amlgen.model.decl.ModelAST`.

    Exactly one of ``data`` (the model text) and ``filename`` must be
    given.  Malformed text raises
    :py:class:`~amlgen.common.errors.ModelSyntaxError` with the line and
    column of the offending token and the tokens the parser expected.
    """
    if filename is not None:
        if data is not None:
            raise ValueError(
                "parse_model: cannot specify both data and filename arguments"
            )
        with open(filename, 'r') as FILE:
            data = FILE.read()
    if data is None:
        raise ValueError("parse_model: no model text given")

    with _parse_lock:
        if _parser is None:
            _build()
        _lexer.lineno = 1
        try:
            statements, data_section = _parser.parse(data, lexer=_lexer)
        except _GrammarError as e:
            raise ModelSyntaxError(
                str(e),
                lineno=e.lineno,
                column=e.column,
                filename=filename,
                expected=e.expected,
            ) from None
    logger.debug("parsed %d model statements", len(statements))
    return ModelAST(statements, data_section, filename)
