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

import re
import logging

from amlgen.common.log import is_debug_set
from amlgen.common.errors import InvalidDataError, UnknownSymbolError

from amlgen.dataportal.parse_datacmds import parse_data_commands, _re_number

logger = logging.getLogger('amlgen.dataportal')

numlist = {int, float}

_num_pattern = re.compile("^(" + _re_number + ")$")

# Marker for an omitted entry in parameter data
MISSING = '.'


class _Location(object):
    """The statement currently being processed (for error messages)"""

    def __init__(self, lineno=None, filename=None):
        self.lineno = lineno
        self.filename = filename

    def error(self, cls, msg):
        return cls(msg, lineno=self.lineno, filename=self.filename)


def _process_token(token):
    if type(token) is tuple:
        return tuple(_process_token(i) for i in token)
    elif type(token) in numlist:
        return token
    elif token[0] == '"' and token[-1] == '"':
        # Strip "flag" quotation characters
        return token[1:-1]
    elif token[0] == '[' and token[-1] == ']':
        vals = []
        token = token[1:-1]
        for item in token.split(","):
            item = item.strip()
            if item[0] in '"\'' and item[0] == item[-1]:
                vals.append(item[1:-1])
            elif _num_pattern.match(item):
                vals.append(_to_number(item))
            else:
                vals.append(item)
        return tuple(vals)
    elif _num_pattern.match(token):
        return _to_number(token)
    else:
        return token


def _to_number(token):
    _num = float(token)
    if '.' in token or 'e' in token or 'E' in token:
        return _num
    _int = int(_num)
    return _int if _int == _num else _num


def _preprocess_data(cmd, where):
    """
    Called by _process_data() to (1) combine tokens that comprise a
    tuple and (2) strip the quotation markers from string tokens
    """
    generate_debug_messages = is_debug_set(logger)
    if generate_debug_messages:
        logger.debug("_preprocess_data(start) %s", cmd)
    state = 0
    newcmd = []
    tpl = []
    for token in cmd:
        if state == 0:
            if type(token) in numlist:
                newcmd.append(token)
            elif token == ',':
                # Commas between data items are optional
                pass
            elif token == '(':
                state = 1
            elif token == ')':
                raise where.error(
                    InvalidDataError, "Unexpected ')' that does not follow a '('"
                )
            elif token == '[':
                state = 3
            elif token == ']':
                raise where.error(
                    InvalidDataError, "Unexpected ']' that does not follow a '['"
                )
            else:
                newcmd.append(_process_token(token))

        else:
            # After a '(' or '['
            close = ')' if state == 1 else ']'
            if type(token) in numlist:
                tpl.append(token)
            elif token == ',':
                pass
            elif token in ('(', '['):
                raise where.error(
                    InvalidDataError, "Nested '%s' in the data" % (token,)
                )
            elif token == close:
                newcmd.append(tuple(tpl))
                tpl = []
                state = 0
            else:
                tpl.append(_process_token(token))

    if state == 1:
        raise where.error(InvalidDataError, "Data ends without tuple ending")
    elif state == 3:
        raise where.error(InvalidDataError, "Data ends without bracket ending")
    if generate_debug_messages:
        logger.debug("_preprocess_data(end) %s", newcmd)
    return newcmd


def _is_template(token):
    return type(token) is tuple and '*' in token


def _symbol(model, name, kind, where):
    """Return the model symbol that a data statement initializes"""
    sym = model.symbols.get(name)
    if sym is None:
        raise where.error(
            UnknownSymbolError, "Data given for undeclared symbol '%s'" % (name,)
        )
    if sym.kind != kind:
        raise where.error(
            InvalidDataError,
            "'%s' is declared as a %s but the data initializes it as a %s"
            % (name, sym.kind, kind),
        )
    if model.component(name).value is not None:
        raise where.error(
            InvalidDataError,
            "%s '%s' is defined with ':=' in the model and cannot also be "
            "given data" % (kind, name),
        )
    return sym


def _process_set(cmd, _model, _data, where):
    """
    Called by _process_data() to process a set declaration.
    """
    generate_debug_messages = is_debug_set(logger)
    if generate_debug_messages:
        logger.debug("DEBUG: _process_set(start) %s", cmd)
    sname = cmd[1]
    sym = _symbol(_model, sname, 'set', where)
    dimen = sym.dimen
    if cmd[2] == ":":
        #
        # A tabular set
        #
        if dimen != 2:
            raise where.error(
                InvalidDataError,
                "Tabular data for set '%s' requires dimen 2 (declared dimen %s)"
                % (sname, dimen),
            )
        i = cmd.index(":=")
        ndx1 = cmd[3:i]
        rows = cmd[i + 1 :]
        ncol = len(ndx1) + 1
        if len(rows) % ncol:
            raise where.error(
                InvalidDataError,
                "Tabular data for set '%s' has %s entries, which is not a "
                "multiple of the row length %s" % (sname, len(rows), ncol),
            )
        members = []
        for i in range(0, len(rows), ncol):
            row = rows[i]
            for j, col in enumerate(ndx1):
                flag = rows[i + j + 1]
                if flag == '+':
                    members.append((row, col))
                elif flag != '-':
                    raise where.error(
                        InvalidDataError,
                        "Tabular data for set '%s' must use '+' or '-' "
                        "(found %r)" % (sname, flag),
                    )
    else:
        #
        # Processing a general set
        #
        members = _process_set_data(cmd[3:], sname, dimen, where)

    seen = set()
    for member in members:
        if member in seen:
            raise where.error(
                InvalidDataError,
                "Duplicate member %s in the data for set '%s'"
                % (_format_member(member), sname),
            )
        seen.add(member)
    if sname in _data and _data[sname] != members:
        raise where.error(
            InvalidDataError, "Conflicting data given for set '%s'" % (sname,)
        )
    _data[sname] = members
    if generate_debug_messages:
        logger.debug("DEBUG: _process_set(end) %s %s", sname, members)


def _process_set_data(cmd, sname, dimen, where):
    """
    Called by _process_set() to process set data.

    Returns the list of members, each one a tuple of length ``dimen``.
    """
    generate_debug_messages = is_debug_set(logger)
    if generate_debug_messages:
        logger.debug("DEBUG: _process_set_data(start) %s", cmd)
    ans = []
    flat = []
    template = None
    ndx = []

    def flush():
        if not flat:
            return
        nval = len(ndx) if template is not None else dimen
        if len(flat) % nval:
            raise where.error(
                InvalidDataError,
                "The data for set '%s' has %s trailing value(s) that do not "
                "form a complete member of dimen %s"
                % (sname, len(flat) % nval, dimen),
            )
        for i in range(0, len(flat), nval):
            vals = flat[i : i + nval]
            if template is None:
                ans.append(tuple(vals))
            else:
                tmpval = list(template)
                for kk, v in zip(ndx, vals):
                    tmpval[kk] = v
                ans.append(tuple(tmpval))
        del flat[:]

    for token in cmd:
        if type(token) is not tuple:
            flat.append(token)
        elif "*" not in token:
            flush()
            if len(token) != dimen:
                raise where.error(
                    InvalidDataError,
                    "Member %s of set '%s' has %s component(s); expected %s"
                    % (_format_member(token), sname, len(token), dimen),
                )
            ans.append(token)
        else:
            flush()
            if len(token) != dimen:
                raise where.error(
                    InvalidDataError,
                    "Template %s for set '%s' has %s component(s); expected %s"
                    % (_format_member(token), sname, len(token), dimen),
                )
            template = token
            ndx = [kk for kk, v in enumerate(template) if v == '*']
    flush()
    if generate_debug_messages:
        logger.debug("DEBUG: _process_set_data(end) %s", ans)
    return ans


def _format_member(member):
    return '(%s)' % (','.join(str(v) for v in member),)


def _store_param(_data, pname, key, value, where):
    table = _data.setdefault(pname, {})
    if key in table and table[key] != value:
        raise where.error(
            InvalidDataError,
            "Conflicting values %r and %r given for %s%s"
            % (table[key], value, pname, _format_key(key)),
        )
    table[key] = value


def _format_key(key):
    if not key:
        return ''
    return '[%s]' % (','.join(str(v) for v in key),)


def _set_default(_default, pname, value, where):
    if pname in _default and _default[pname] != value:
        raise where.error(
            InvalidDataError,
            "Conflicting data defaults %r and %r given for param '%s'"
            % (_default[pname], value, pname),
        )
    _default[pname] = value


def _apply_template(template, ndx, vals):
    if template is None:
        return tuple(vals)
    tmpval = list(template)
    for kk, v in zip(ndx, vals):
        tmpval[kk] = v
    return tuple(tmpval)


def _process_param(cmd, _model, _data, _default, where):
    """
    Called by _process_data to process data for a Parameter declaration
    """
    generate_debug_messages = is_debug_set(logger)
    if generate_debug_messages:
        logger.debug("DEBUG: _process_param(start) %s", cmd)
    cmd = cmd[1:]
    if cmd[0] == ":":
        return _process_param_table(cmd[1:], _model, _data, where)

    pname = cmd[0]
    dim = _symbol(_model, pname, 'param', where).arity
    cmd = cmd[1:]
    if len(cmd) >= 2 and cmd[0] == "default":
        _set_default(_default, pname, cmd[1], where)
        cmd = cmd[2:]
    transpose = False
    if cmd and cmd[0] == "(tr)":
        transpose = True
        cmd = cmd[1:]
    if cmd and cmd[0] == ":=":
        cmd = cmd[1:]

    template = None
    ndx = list(range(dim))
    i = 0
    while i < len(cmd):
        token = cmd[i]
        if _is_template(token):
            if len(token) != dim:
                raise where.error(
                    InvalidDataError,
                    "Template %s for param '%s' has %s component(s); expected %s"
                    % (_format_member(token), pname, len(token), dim),
                )
            template = token
            ndx = [kk for kk, v in enumerate(template) if v == '*']
            i += 1
            continue
        # Find the end of this block
        j = i
        while j < len(cmd) and cmd[j] != ':' and not _is_template(cmd[j]):
            j += 1
        if token == ':':
            _process_param_matrix(
                cmd, i, pname, dim, template, ndx, transpose, _data, where
            )
            # skip past the header and the following rows
            j = cmd.index(':=', i) + 1
            while j < len(cmd) and cmd[j] != ':' and not _is_template(cmd[j]):
                j += 1
        else:
            flat = []
            for item in cmd[i:j]:
                if type(item) is tuple:
                    flat.extend(item)
                else:
                    flat.append(item)
            nval = len(ndx) + 1
            if len(flat) % nval:
                raise where.error(
                    InvalidDataError,
                    "The data for param '%s' has %s value(s), which is not a "
                    "multiple of %s (%s index value(s) per entry, plus the "
                    "parameter value)" % (pname, len(flat), nval, nval - 1),
                )
            for k in range(0, len(flat), nval):
                value = flat[k + nval - 1]
                if value == MISSING:
                    continue
                key = _apply_template(template, ndx, flat[k : k + nval - 1])
                _store_param(_data, pname, key, value, where)
        i = j
    if generate_debug_messages:
        logger.debug("DEBUG: _process_param(end) %s %s", pname, _data.get(pname))


def _process_param_matrix(cmd, i, pname, dim, template, ndx, transpose, _data, where):
    """Process one ``: col col ... := row val val ...`` block"""
    if len(ndx) != 2:
        raise where.error(
            InvalidDataError,
            "Tabular data for param '%s' requires 2 free index positions "
            "(found %s)" % (pname, len(ndx)),
        )
    try:
        k = cmd.index(':=', i)
    except ValueError:
        raise where.error(
            InvalidDataError,
            "Tabular data for param '%s' is missing ':=' after the column "
            "labels" % (pname,),
        ) from None
    cols = cmd[i + 1 : k]
    j = k + 1
    while j < len(cmd) and cmd[j] != ':' and not _is_template(cmd[j]):
        j += 1
    rows = cmd[k + 1 : j]
    ncol = len(cols) + 1
    if len(rows) % ncol:
        raise where.error(
            InvalidDataError,
            "Tabular data for param '%s' has %s entries, which is not a "
            "multiple of the row length %s" % (pname, len(rows), ncol),
        )
    for r in range(0, len(rows), ncol):
        row = rows[r]
        for c, col in enumerate(cols):
            value = rows[r + c + 1]
            if value == MISSING:
                continue
            if transpose:
                key = _apply_template(template, ndx, (col, row))
            else:
                key = _apply_template(template, ndx, (row, col))
            _store_param(_data, pname, key, value, where)


def _process_param_table(cmd, _model, _data, where):
    """
    Process ``param : [S :] p q := ...``: several parameters sharing one
    index (and optionally initializing the index set ``S``)
    """
    try:
        k = cmd.index(':=')
    except ValueError:
        raise where.error(
            InvalidDataError, "Parameter table is missing ':='"
        ) from None
    header = cmd[:k]
    sname = None
    if ':' in header:
        c = header.index(':')
        if c != 1:
            raise where.error(
                InvalidDataError,
                "Parameter table must name exactly one set before ':'",
            )
        sname = header[0]
        header = header[2:]
    if not header:
        raise where.error(InvalidDataError, "Parameter table names no parameters")
    dims = set(_symbol(_model, pname, 'param', where).arity for pname in header)
    if len(dims) != 1:
        raise where.error(
            InvalidDataError,
            "Parameters %s in one table have different index arities"
            % (', '.join(header),),
        )
    dim = dims.pop()
    if sname is not None:
        sdim = _symbol(_model, sname, 'set', where).dimen
        if sdim != dim:
            raise where.error(
                InvalidDataError,
                "Set '%s' has dimen %s but indexes a parameter table of "
                "arity %s" % (sname, sdim, dim),
            )
    flat = []
    for item in cmd[k + 1 :]:
        if type(item) is tuple:
            flat.extend(item)
        else:
            flat.append(item)
    nval = dim + len(header)
    if len(flat) % nval:
        raise where.error(
            InvalidDataError,
            "Parameter table (%s) has %s value(s), which is not a multiple "
            "of the row length %s" % (', '.join(header), len(flat), nval),
        )
    members = []
    for r in range(0, len(flat), nval):
        key = tuple(flat[r : r + dim])
        members.append(key)
        for c, pname in enumerate(header):
            value = flat[r + dim + c]
            if value == MISSING:
                continue
            _store_param(_data, pname, key, value, where)
    if sname is not None:
        _process_set(
            ['set', sname, ':='] + [m if len(m) != 1 else m[0] for m in members],
            _model,
            _data,
            where,
        )


def _process_data(cmd, _model, _data, _default, where):
    """
    Called by DataPortal.load() to process one data command
    """
    generate_debug_messages = is_debug_set(logger)
    if generate_debug_messages:
        logger.debug("DEBUG: _process_data (start) %s", cmd)
    if len(cmd) == 0:
        raise where.error(InvalidDataError, "Empty data command")
    kind = cmd[0]
    if kind == 'set':
        _process_set(_preprocess_data(cmd, where), _model, _data, where)
    elif kind == 'param':
        _process_param(_preprocess_data(cmd, where), _model, _data, _default, where)
    else:
        raise where.error(InvalidDataError, "Unknown data command '%s'" % (kind,))
    if generate_debug_messages:
        logger.debug("DEBUG: _process_data (end)")


def process_data_text(data, _model, _data, _default, filename=None, lineno=1):
    """Parse and process every data command in ``data``"""
    cmds = parse_data_commands(data=data, filename=filename, lineno=lineno)
    for cmd_lineno, cmd in cmds:
        _process_data(cmd, _model, _data, _default, _Location(cmd_lineno, filename))
    return len(cmds)
