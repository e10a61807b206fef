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

"""Declarative, validated option containers.

A :py:class:`ConfigDict` declares the options a component accepts
(each a :py:class:`ConfigValue` with a default and a *domain* callable
that validates and casts incoming values).  Calling a ConfigDict
returns an independent copy, optionally updated from a dict of new
values, which is how components derive per-call options from their
class-level ``CONFIG``::

    CONFIG = ConfigDict()
    CONFIG.declare('time_limit', ConfigValue(domain=NonNegativeFloat))

    config = self.CONFIG(kwds)

"""

from collections.abc import Mapping
from operator import attrgetter

from amlgen.common.modeling import NOTSET


def Bool(val):
    """Domain validator for bool-like objects.

    This is a more strict domain than ``bool``, as it will error on
    values that do not "look" like a Boolean value (i.e., it accepts
    ``True``, ``False``, 0, 1, and the case insensitive strings
    ``'true'``, ``'false'``, ``'yes'``, ``'no'``, ``'t'``, ``'f'``,
    ``'y'``, and ``'n'``)

    """
    if type(val) is bool:
        return val
    if isinstance(val, str):
        v = val.upper()
        if v in {'TRUE', 'YES', 'T', 'Y', '1'}:
            return True
        if v in {'FALSE', 'NO', 'F', 'N', '0'}:
            return False
    elif int(val) == float(val):
        v = int(val)
        if v in {0, 1}:
            return bool(v)
    raise ValueError("Expected Boolean, but received %s" % (val,))


def PositiveInt(val):
    """Domain validation function admitting strictly positive integers"""
    ans = int(val)
    # We want to give an error for floating point numbers...
    if ans != float(val) or ans <= 0:
        raise ValueError("Expected positive int, but received %s" % (val,))
    return ans


def NonNegativeInt(val):
    """Domain validation function admitting integers >= 0"""
    ans = int(val)
    if ans != float(val) or ans < 0:
        raise ValueError("Expected non-negative int, but received %s" % (val,))
    return ans


def NonNegativeFloat(val):
    """Domain validation function admitting numbers >= 0"""
    ans = float(val)
    if ans < 0:
        raise ValueError("Expected non-negative float, but received %s" % (val,))
    return ans


class In(object):
    """In(domain, cast=None)
    Domain validation class admitting a Container of possible values

    Parameters
    ----------
    domain: Container
        The container that valid values must be in.

    cast: Callable, optional
        A callable object to attempt to cast values into before checking
        if they are in the domain.
    """

    def __init__(self, domain, cast=None):
        self._domain = domain
        self._cast = cast

    def __call__(self, value):
        if self._cast is not None:
            v = self._cast(value)
        else:
            v = value
        if v in self._domain:
            return v
        raise ValueError("value %s not in domain %s" % (value, self._domain))


class ConfigBase(object):
    __slots__ = (
        '_parent',
        '_domain',
        '_name',
        '_userSet',
        '_data',
        '_default',
        '_description',
        '_doc',
    )

    def __init__(self, default=None, domain=None, description=None, doc=None):
        self._parent = None
        self._name = None
        self._userSet = False
        self._data = NOTSET
        self._default = default
        self._domain = domain
        self._description = description
        self._doc = doc

    def __call__(self, value=NOTSET, default=NOTSET, domain=NOTSET, description=NOTSET):
        """Return an independent copy of this config, optionally updated"""
        if isinstance(self, ConfigDict):
            assert domain is NOTSET
            assert default is NOTSET
            kwds = {}
        else:
            if default is NOTSET:
                default = self.value()
            kwds = {
                'default': default,
                'domain': self._domain if domain is NOTSET else domain,
            }
        kwds['description'] = (
            self._description if description is NOTSET else description
        )
        ans = self.__class__(**kwds)

        if isinstance(self, ConfigDict):
            for k, v in self._data.items():
                ans._data[k] = _tmp = v()
                ans._declared.add(k)
                _tmp._parent = ans
                _tmp._name = v._name

        if value is not NOTSET:
            ans.set_value(value)
        return ans

    def name(self, fully_qualified=False):
        if self._name is None:
            return ""
        elif fully_qualified and self._parent is not None:
            pName = self._parent.name(fully_qualified)
            if not pName:
                return self._name
            return pName + '.' + self._name
        else:
            return self._name

    def _cast(self, value):
        if value is None:
            return value
        if self._domain is not None:
            try:
                return self._domain(value)
            except Exception as e:
                raise ValueError(
                    "invalid value for configuration '%s':\n"
                    "\tFailed casting %s\n\tto %s\n\tError: %s"
                    % (
                        self.name(True),
                        value,
                        getattr(self._domain, '__name__', self._domain),
                        e,
                    )
                ) from e
        return value

    def reset(self):
        self._setter(self._default)
        self._userSet = False

    def user_values(self):
        if self._userSet:
            yield self

    def display(self, ostream):
        for level, obj in self._display_items(0):
            if isinstance(obj, ConfigDict):
                ostream.write('%s%s:\n' % ('  ' * level, obj.name()))
            else:
                ostream.write('%s%s: %s\n' % ('  ' * level, obj.name(), obj.value()))

    def _display_items(self, level):
        yield level, self


class ConfigValue(ConfigBase):
    """Store and manipulate a single configuration value.

    Parameters
    ----------
    default: optional
        The default value that this ConfigValue will take if no value is
        provided.

    domain: Callable, optional
        The domain can be any callable that accepts a candidate value
        and returns the value converted to the desired type, optionally
        performing any data validation.  The result will be stored into
        the ConfigValue.  Examples include type constructors like `int`
        or `float`.

    description: str, optional
        The short description of this value

    doc: str, optional
        The long documentation string for this value

    """

    __slots__ = ()

    def __init__(self, default=None, domain=None, description=None, doc=None):
        super().__init__(default, domain, description, doc)
        self.reset()

    def value(self):
        return self._data

    def _setter(self, value):
        self._data = self._cast(value)

    def set_value(self, value):
        self._setter(value)
        self._userSet = True


class ConfigDict(ConfigBase, Mapping):
    """Store and manipulate a dictionary of configuration values.

    Parameters
    ----------
    description: str, optional
        The short description of this dict

    doc: str, optional
        The long documentation string for this dict

    """

    __slots__ = ('_declared',)
    _reserved_words = set()

    def __init__(self, description=None, doc=None):
        self._declared = set()
        ConfigBase.__init__(self, None, None, description, doc)
        self._data = {}

    def __getitem__(self, key):
        _key = str(key).replace(' ', '_')
        if isinstance(self._data[_key], ConfigValue):
            return self._data[_key].value()
        else:
            return self._data[_key]

    def get(self, key, default=NOTSET):
        _key = str(key).replace(' ', '_')
        if _key in self._data:
            return self._data[_key]
        if default is NOTSET:
            return None
        return ConfigValue(default)

    def __setitem__(self, key, val):
        _key = str(key).replace(' ', '_')
        if _key not in self._data:
            raise ValueError(
                "Key '%s' not defined in ConfigDict '%s'"
                " and Dict disallows implicit entries" % (key, self.name(True))
            )
        cfg = self._data[_key]
        # Trap self-assignment (useful for providing editor completion)
        if cfg is val:
            return
        cfg.set_value(val)

    def __contains__(self, key):
        _key = str(key).replace(' ', '_')
        return _key in self._data

    def __len__(self):
        return len(self._data)

    def __iter__(self):
        return map(attrgetter('_name'), self._data.values())

    def __getattr__(self, attr):
        # Note: __getattr__ is only called after all "usual" attribute
        # lookup methods have failed.
        _attr = attr.replace(' ', '_')
        if _attr == "_data" or _attr not in self._data:
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{attr}'"
            )
        return ConfigDict.__getitem__(self, _attr)

    def __setattr__(self, name, value):
        if name in ConfigDict._reserved_words:
            super().__setattr__(name, value)
        else:
            ConfigDict.__setitem__(self, name, value)

    def keys(self):
        return iter(self)

    def values(self):
        return map(self.__getitem__, self._data)

    def items(self):
        for key, val in self._data.items():
            yield (val._name, self[key])

    def declare(self, name, config):
        name = str(name)
        _name = name.replace(' ', '_')
        if config._parent is not None:
            raise ValueError(
                "config '%s' is already assigned to ConfigDict '%s'; "
                "cannot reassign to '%s'"
                % (name, config._parent.name(True), self.name(True))
            )
        if _name in self._data:
            raise ValueError(
                "duplicate config '%s' defined for ConfigDict '%s'"
                % (name, self.name(True))
            )
        self._data[_name] = config
        self._declared.add(_name)
        config._parent = self
        config._name = name
        return config

    def value(self):
        return {cfg._name: cfg.value() for cfg in self._data.values()}

    def set_value(self, value):
        if value is None:
            return self
        if not isinstance(value, Mapping):
            raise ValueError(
                "Expected dict value for %s.set_value, found %s"
                % (self.name(True), type(value).__name__)
            )
        _keys = {str(key).replace(' ', '_'): key for key in value}
        unknown = [key for _key, key in _keys.items() if _key not in self._data]
        if unknown:
            raise ValueError(
                "key '%s' not defined for ConfigDict '%s' and implicit "
                "(undefined) keys are not allowed" % (unknown[0], self.name(True))
            )
        for _key, key in _keys.items():
            self._data[_key].set_value(value[key])
        self._userSet = True
        return self

    def reset(self):
        for cfg in self._data.values():
            cfg.reset()
        self._userSet = False

    def user_values(self):
        for cfg in self._data.values():
            yield from cfg.user_values()

    def _display_items(self, level):
        if self._name is not None:
            yield level, self
            level += 1
        for cfg in self._data.values():
            yield from cfg._display_items(level)


ConfigDict._reserved_words.update(
    dir(ConfigDict), ConfigBase.__slots__, ConfigDict.__slots__
)
