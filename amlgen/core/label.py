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

__all__ = ['format_value', 'format_label', 'parse_label', 'cpxlp_label_from_name']

import re

# This module provides the row and column labels of generated
# instances, e.g. ``flow[1,'A']`` or ``Balance[p=P1,m=2]``, and the
# remap of those labels into names that are legal in CPLEX LP files
# (which do not allow characters such as "[", "]" or ",").

_re_plain = re.compile(r'^[A-Za-z_][A-Za-z0-9_\.]*$')
_re_int = re.compile(r'^[-+]?[0-9]+$')
_re_float = re.compile(r'^[-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?$')
_re_item = re.compile(
    r"\s*(?:([A-Za-z_][A-Za-z0-9_]*)=)?('(?:[^']|'')*'|[^,'\]]+)\s*(?:,|\]$)"
)


def format_value(val):
    """Format one index value.

    Strings are quoted (with doubled embedded quotes) unless they read
    unambiguously as a plain identifier.
    """
    if val.__class__ is str:
        if _re_plain.match(val):
            return val
        return "'%s'" % (val.replace("'", "''"),)
    if val.__class__ is float:
        return repr(val)
    return str(val)


def format_label(name, index, labels=None):
    """Return ``name[v1,v2]`` (or ``name[l1=v1,l2=v2]`` with labels)"""
    if not index:
        return name
    if labels is None:
        return '%s[%s]' % (name, ','.join(format_value(v) for v in index))
    return '%s[%s]' % (
        name,
        ','.join('%s=%s' % (l, format_value(v)) for l, v in zip(labels, index)),
    )


def _parse_value(token):
    if token[0] == "'":
        return token[1:-1].replace("''", "'")
    if _re_int.match(token):
        return int(token)
    if _re_float.match(token):
        return float(token)
    return token


def parse_label(label):
    """Invert :py:func:`format_label`: return ``(name, index tuple)``"""
    i = label.find('[')
    if i < 0:
        return label, ()
    if not label.endswith(']'):
        raise ValueError("invalid label '%s'" % (label,))
    name = label[:i]
    pos = i + 1
    index = []
    while pos < len(label):
        m = _re_item.match(label, pos)
        if m is None:
            raise ValueError("invalid label '%s'" % (label,))
        index.append(_parse_value(m.group(2).strip()))
        pos = m.end()
    return name, tuple(index)


class _CharMapper(object):
    def __init__(self, preserve, translate, other):
        """
        Arguments::
           preserve: a string of characters to preserve
           translate: a dict or key/value list of characters to translate
           other: the character to return for all characters not in
                  preserve or translate
        """
        self.table = {
            k if isinstance(k, int) else ord(k): v for k, v in dict(translate).items()
        }
        for c in preserve:
            _c = ord(c)
            if _c in self.table and self.table[_c] != c:
                raise RuntimeError(
                    "Duplicate character '%s' appears in both "
                    "translate table and preserve list" % (c,)
                )
            self.table[_c] = c
        self.other = other

    def __getitem__(self, c):
        # Most of the time c should be known.  For the rare cases we
        # encounter a new character, remember it by adding a new entry
        # into the translation table and return the default character
        try:
            return self.table[c]
        except KeyError:
            self.table[c] = self.other
            return self.other

    def make_table(self):
        return ''.join(self[i] for i in range(256))


_alpha = 'abcdefghijklmnopqrstuvwxyzABCDEFGHIJLKMNOPQRSTUVWXYZ'
_digit = '1234567890'
_cpxlp_translation_table = _CharMapper(
    preserve=_alpha + _digit + '()_.', translate=zip('[]{}', '()()'), other='_'
).make_table()


def cpxlp_label_from_name(name):
    if name is None:
        raise RuntimeError("Illegal name=None supplied to cpxlp_label_from_name function")
    return name.translate(_cpxlp_translation_table)
