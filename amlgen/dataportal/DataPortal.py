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

import logging

from amlgen.common.errors import InvalidDataError
from amlgen.dataportal.process_data import (
    process_data_text,
    _Location,
    _store_param,
    _set_default,
    _symbol,
)

logger = logging.getLogger('amlgen.dataportal')


class DataPortal(object):
    """
    An object that collects the data for one model from the model's
    own ``data;`` section and from any number of data files.

    Internally, the data in a DataPortal object is organized as follows::

        _data[symbol] -> list of member tuples      (sets)
        _data[symbol][index tuple] -> value         (parameters)
        _default[symbol] -> value                   (``param p default v``)

    Loading the same entry twice is allowed only if both sources agree;
    conflicting values raise :py:class:`InvalidDataError`.

    Args:
        model: The model for which this data is associated.  This is
            used for error checking (e.g. object names must
            exist in the model, set dimensions must match, etc.).
        filename (str): A file from which data is loaded.  Default
            is :const:`None`.
        data (str): Data commands to load.  Default is :const:`None`.
    """

    def __init__(self, model=None, filename=None, data=None):
        self._model = model
        self._data = {}
        self._default = {}
        self._sources = []
        if filename is not None or data is not None:
            self.load(filename=filename, data=data)

    @property
    def model(self):
        return self._model

    def load(self, filename=None, data=None, lineno=1):
        """
        Load data commands from a file or a string.

        Args:
            filename (str): The data file.  When ``data`` is also given,
                ``filename`` is only used to label error locations.
            data (str): The text of the data commands.
            lineno (int): The line number of the first line of ``data``.
        """
        if self._model is None:
            raise ValueError("A DataPortal must be associated with a model to load data")
        if filename is None and data is None:
            raise ValueError("DataPortal.load() requires a filename or data")
        n = process_data_text(
            data,
            self._model,
            self._data,
            self._default,
            filename=filename,
            lineno=lineno,
        )
        self._sources.append(filename or '<string>')
        logger.debug(
            "loaded %d data statements from %s", n, filename or '<string>'
        )

    def merge(self, other):
        """Merge the data from another DataPortal into this one"""
        where = _Location(filename=', '.join(other._sources) or None)
        for name, value in other._data.items():
            sym = _symbol(self._model, name, other._model.symbols.get(name).kind, where)
            if sym.kind == 'set':
                if name in self._data and self._data[name] != value:
                    raise where.error(
                        InvalidDataError,
                        "Conflicting data given for set '%s'" % (name,),
                    )
                self._data[name] = list(value)
            else:
                for key, val in value.items():
                    _store_param(self._data, name, key, val, where)
        for name, value in other._default.items():
            _set_default(self._default, name, value, where)
        self._sources.extend(other._sources)

    def data(self, name=None):
        """
        Return the data associated with a symbol

        Args:
            name (str): The name of the symbol that is returned.
                Default is :const:`None`, which indicates that the
                entire data dictionary is returned.
        """
        if name is None:
            return self._data
        return self._data[name]

    def default(self, name, default=None):
        """Return the data-level default for a parameter"""
        return self._default.get(name, default)

    def defaults(self):
        """Return the data-level defaults ``{param name: value}``"""
        return dict(self._default)

    def __getitem__(self, name):
        """
        Return the specified data value.

        Set data is the list of member tuples; parameter data is the
        ``{index: value}`` dictionary, except that the value of a scalar
        parameter is returned directly.
        """
        ans = self._data[name]
        if type(ans) is dict and () in ans and len(ans) == 1:
            # The data is a simple value
            return ans[()]
        return ans

    def __setitem__(self, name, value):
        """
        Set the data of ``name``.

        Args:
            name (str): The name of the symbol that is set.
            value: A list of members (sets), a ``{index: value}``
                dictionary (indexed parameters) or a value (scalar
                parameters).
        """
        if self._model is None:
            raise ValueError("A DataPortal must be associated with a model to set data")
        where = _Location()
        sym = self._model.symbols.get(name)
        if sym is not None and sym.kind == 'set':
            _symbol(self._model, name, 'set', where)
            members = []
            for m in value:
                m = m if type(m) is tuple else (m,)
                if len(m) != sym.dimen:
                    raise InvalidDataError(
                        "Member %s of set '%s' has %s component(s); expected %s"
                        % (m, name, len(m), sym.dimen)
                    )
                if m in members:
                    raise InvalidDataError(
                        "Duplicate member %s in the data for set '%s'" % (m, name)
                    )
                members.append(m)
            self._data[name] = members
            return
        _symbol(self._model, name, 'param', where)
        if type(value) is not dict:
            value = {(): value}
        self._data[name] = {
            (k if type(k) is tuple else (k,)): v for k, v in value.items()
        }

    def __contains__(self, name):
        return name in self._data

    def keys(self):
        """
        Returns an iterator of the data keys.
        """
        return self._data.keys()

    def values(self):
        """
        Returns an iterator of the data values.
        """
        for key in self._data:
            yield self[key]

    def items(self):
        """
        Return an iterator of (name, value) tuples from the data.
        """
        for key in self._data:
            yield key, self[key]
