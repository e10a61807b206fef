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

__all__ = ['parse_data_commands']

import bisect
import threading

import ply.lex as lex
import ply.yacc as yacc

from amlgen.common.errors import ModelSyntaxError


_re_number = r'[-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?'

## -----------------------------------------------------------
##
## Lexer definitions for tokenizing the input
##
## -----------------------------------------------------------

states = (('data', 'inclusive'),)

reserved = {
    'data': 'DATA',
    'set': 'SET',
    'param': 'PARAM',
    'end': 'END',
}

# Token names
tokens = [
    "COMMA",
    "SEMICOLON",
    "COLON",
    "COLONEQ",
    "LBRACKET",
    "RBRACKET",
    "LPAREN",
    "RPAREN",
    "WORD",
    "STRING",
    "BRACKETEDSTRING",
    "QUOTEDSTRING",
    "TR",
    "ASTERISK",
    "NUM_VAL",
] + list(reserved.values())

# Ignore space and tab
t_ignore = " \t\r"

# Regular expression rules
t_COMMA = r","
t_LBRACKET = r"\["
t_RBRACKET = r"\]"
t_COLON = r":"
t_TR = r"\(tr\)"
t_LPAREN = r"\("
t_RPAREN = r"\)"
t_ASTERISK = r"\*"


#
# Notes on PLY tokenization
#   - token functions (beginning with "t_") are prioritized in the order
#     that they are declared in this module
#
def t_newline(t):
    r'[\n]+'
    t.lexer.lineno += len(t.value)
    t.lexer.linepos.extend(t.lexpos + i for i, _ in enumerate(t.value))


# Discard comments
_re_singleline_comment = r'(?:\#[^\n]*)'
_re_multiline_comment = r'(?:/\*(?:[\n]|.)*?\*/)'


@lex.TOKEN('|'.join([_re_singleline_comment, _re_multiline_comment]))
def t_COMMENT(t):
    # Single-line and multi-line strings
    nlines = t.value.count('\n')
    t.lexer.lineno += nlines
    # We will never need to determine column numbers within this comment
    # block, so it is sufficient to just worry about the *last* newline
    # in the comment
    lastpos = t.lexpos + t.value.rfind('\n')
    t.lexer.linepos.extend(lastpos for i in range(nlines))


def t_COLONEQ(t):
    r':='
    t.lexer.begin('data')
    return t


def t_SEMICOLON(t):
    r';'
    t.lexer.begin('INITIAL')
    return t


# Numbers must be followed by a delimiter token (EOF is not a concern,
# as valid DAT files always end with a ';').
@lex.TOKEN(_re_number + r'(?=[\s()\[\]{}:;,])')
def t_NUM_VAL(t):
    _num = float(t.value)
    if '.' in t.value or 'e' in t.value or 'E' in t.value:
        t.value = _num
    else:
        _int = int(_num)
        t.value = _int if _num == _int else _num
    return t


def t_WORD(t):
    r'[a-zA-Z_][a-zA-Z_0-9\.+\-]*'
    if t.value in reserved:
        t.type = reserved[t.value]  # Check for reserved words
    return t


def t_STRING(t):
    r'[a-zA-Z0-9_\.+\-\\\/]+'
    # Note: RE guarantees the string has no embedded quotation characters
    t.value = '"' + t.value + '"'
    return t


def t_data_BRACKETEDSTRING(t):
    r'[a-zA-Z0-9_\.+\-]*\[[a-zA-Z0-9_\.+\-\*,\s]+\]'
    # NO SPACES
    # a[1,_df,'foo bar']
    # [1,*,'foo bar']
    return t


_re_quoted_str = r'"(?:[^"]|"")*"'


@lex.TOKEN("|".join([_re_quoted_str, _re_quoted_str.replace('"', "'")]))
def t_QUOTEDSTRING(t):
    # Normalize the quotes to use '"', and replace doubled ("escaped")
    # quotation characters with a single character
    t.value = '"' + t.value[1:-1].replace(2 * t.value[0], t.value[0]) + '"'
    return t


def _lex_token_position(t):
    i = bisect.bisect_left(t.lexer.linepos, t.lexpos)
    if i:
        return t.lexpos - t.lexer.linepos[i - 1]
    return t.lexpos + 1


# Error handling rule
def t_error(t):
    raise ModelSyntaxError(
        "Illegal character '%s' in data" % (t.value[0],),
        lineno=t.lexer.lineno,
        column=_lex_token_position(t),
        filename=_parse_info['filename'],
    )


## -----------------------------------------------------------
##
## Yacc grammar for data commands
##
## -----------------------------------------------------------


def p_expr(p):
    '''expr : statements
    |'''
    if len(p) == 2:
        _parse_info['commands'].extend(stmt for stmt in p[1] if stmt is not None)


def p_statements(p):
    '''statements : statements statement
    | statement'''
    len_p = len(p)
    if len_p == 3:
        p[0] = p[1]
        p[0].append(p[2])
    else:
        p[0] = [p[1]]


def p_statement(p):
    '''statement : SET WORD COLONEQ datastar SEMICOLON
    | SET WORD COLON itemstar COLONEQ datastar SEMICOLON
    | PARAM items COLONEQ datastar SEMICOLON
    | DATA SEMICOLON
    | END SEMICOLON
    '''
    stmt = p[1]
    if stmt == 'set':
        if len(p) == 6:
            p[0] = (p.lineno(1), ['set', p[2], ':='] + p[4])
        else:
            p[0] = (p.lineno(1), ['set', p[2], ':'] + p[4] + [':='] + p[6])
    elif stmt == 'param':
        p[0] = (p.lineno(1), ['param'] + p[2] + [':='] + p[4])
    else:
        # Not necessary, but nice to document how statement could end up None
        p[0] = None


def p_datastar(p):
    '''
    datastar : data
             |
    '''
    if len(p) == 2:
        p[0] = p[1]
    else:
        p[0] = []


def p_data(p):
    '''
    data : data NUM_VAL
         | data WORD
         | data STRING
         | data QUOTEDSTRING
         | data BRACKETEDSTRING
         | data SET
         | data PARAM
         | data LPAREN
         | data RPAREN
         | data LBRACKET
         | data RBRACKET
         | data COMMA
         | data ASTERISK
         | data COLON
         | data COLONEQ
         | NUM_VAL
         | WORD
         | STRING
         | QUOTEDSTRING
         | BRACKETEDSTRING
         | SET
         | PARAM
         | LPAREN
         | RPAREN
         | LBRACKET
         | RBRACKET
         | COMMA
         | ASTERISK
         | COLON
    '''
    # Locate and handle item as necessary
    single_item = len(p) == 2
    if single_item:
        tmp = p[1]
    else:
        tmp = p[2]

    # Grow items list according to parsed item length
    if single_item:
        p[0] = [tmp]
    else:
        # yacc __getitem__ is expensive: use a local list to avoid a
        # getitem call on p[0]
        tmp_lst = p[1]
        tmp_lst.append(tmp)
        p[0] = tmp_lst


def p_itemstar(p):
    '''
    itemstar : items
             |
    '''
    if len(p) == 2:
        p[0] = p[1]
    else:
        p[0] = []


def p_items(p):
    '''
    items : items NUM_VAL
          | items WORD
          | items STRING
          | items QUOTEDSTRING
          | items COMMA
          | items COLON
          | items LBRACKET
          | items RBRACKET
          | items TR
          | items LPAREN
          | items RPAREN
          | items ASTERISK
          | items SET
          | items PARAM
          | NUM_VAL
          | WORD
          | STRING
          | QUOTEDSTRING
          | COMMA
          | COLON
          | LBRACKET
          | RBRACKET
          | TR
          | LPAREN
          | RPAREN
          | ASTERISK
          | SET
          | PARAM
    '''
    # Locate and handle item as necessary
    single_item = len(p) == 2
    if single_item:
        tmp = p[1]
    else:
        tmp = p[2]
    if (
        type(tmp) is str
        and tmp[0] == '"'
        and tmp[-1] == '"'
        and len(tmp) > 2
        and not ' ' in tmp
    ):
        tmp = tmp[1:-1]

    # Grow items list according to parsed item length
    if single_item:
        p[0] = [tmp]
    else:
        # yacc __getitem__ is expensive: use a local list to avoid a
        # getitem call on p[0]
        tmp_lst = p[1]
        tmp_lst.append(tmp)
        p[0] = tmp_lst


def p_error(p):
    expected = ()
    state = getattr(dat_yaccer, 'state', None)
    if state is not None:
        expected = tuple(sorted(dat_yaccer.action[state]))
    if p is None:
        raise ModelSyntaxError(
            "Syntax error in data: unexpected end of input (missing ';'?)",
            lineno=dat_lexer.lineno,
            filename=_parse_info['filename'],
            expected=expected,
        )
    raise ModelSyntaxError(
        "Syntax error in data at token '%s' with value '%s'" % (p.type, p.value),
        lineno=p.lineno,
        column=_lex_token_position(p),
        filename=_parse_info['filename'],
        expected=expected,
    )


# --------------------------------------------------------------
# the DAT file lexer and yaccer only need to be
# created once, so have the corresponding objects
# accessible at module scope.
# --------------------------------------------------------------

dat_lexer = None
dat_yaccer = None
_parse_info = None
_parse_lock = threading.Lock()


#
# The function that performs the parsing
#
def parse_data_commands(data=None, filename=None, lineno=1):
    """Parse data commands into a list of ``(lineno, command)`` pairs.

    Each command is the flat token list of one ``set`` or ``param``
    statement (e.g. ``['param', 'c', ':', 1, 2, ':=', ...]``).  The
    ``lineno`` argument is the line number of the first line of
    ``data`` (used when the data section is embedded in a model file).
    """
    global dat_lexer
    global dat_yaccer
    global _parse_info

    #
    # Parse the file
    #
    if filename is not None and data is None:
        with open(filename, 'r') as FILE:
            data = FILE.read()

    if data is None:
        return None

    with _parse_lock:
        # if the lexer/yaccer haven't been initialized, do so.
        if dat_lexer is None:
            dat_lexer = lex.lex()
            dat_yaccer = yacc.yacc(
                debug=False,
                write_tables=False,
                tabmodule='amlgen_dat_parsetab',
                errorlog=yacc.NullLogger(),
            )

        #
        # Initialize parse object
        #
        dat_lexer.linepos = []
        dat_lexer.lineno = lineno
        dat_lexer.begin('INITIAL')
        _parse_info = {'commands': [], 'filename': filename}
        dat_yaccer.parse(data, lexer=dat_lexer)
        ans = _parse_info['commands']
        _parse_info = None
    return ans
