"""
Protopt value coercion.

Overview
- Converters: a mutable mapping from target type to a `parse(raw) -> value`
  callable, plus the value a type defaults to when no token was captured.
  It is the conversion facility options rely on; it is injected through
  OptionContext (or a Coercer) rather than referenced as hidden state.
- Coercer: turns one raw token into a target type.
  • Optional[X] / X | None is unwrapped to X before conversion.
  • None as raw token yields the default of the requested type, no conversion.
  • Any converter failure becomes OptionValueError carrying the raw string,
    the effective type name and the option's display name; the converter's
    exception is kept as __cause__.
  • Warnings raised by a converter are re-issued as OptionValueWarning.
- coercer: process-wide default Coercer over a default Converters registry.

Thread-safety
- Coercer itself holds no per-call state. The registry is a plain dict
  underneath; concurrent registration while parsing must be guarded by the host.
- Each conversion runs under warnings.catch_warnings(), which swaps the
  process-wide warning filters for its duration. Concurrent conversions, or
  other threads relying on warning filters meanwhile, must be serialized by
  the host.
"""
import decimal
import enum
import fractions
import logging
import pathlib
import types
import typing
import warnings
from collections.abc import MutableMapping

from .faults import *
from .utils import Unset

logger = logging.getLogger(__name__)

CONVERSION_TEMPLATE = "could not convert string {0!r} to type {1} for option {2!r}"

_TRUTHY = frozenset(("true", "yes", "on", "1"))
_FALSY = frozenset(("false", "no", "off", "0"))


def _parse_bool(raw, /):
    if (lowered := raw.strip().lower()) in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError("invalid boolean literal: %r" % raw)


def _parse_enum(target):
    def parse(raw, /):
        try:
            return target[raw]
        except KeyError:
            return target(raw)
    return parse


def typename(target, /):
    """display name of a target type (``int``, ``Path``, ``list[int]``)."""
    if isinstance(target, type) and not typing.get_args(target):
        return target.__name__
    return repr(target).removeprefix("typing.")


def unwrap(target, /):
    """
    resolve an optional wrapper to the type it wraps.

    returns (effective, optional): Optional[int] and int | None give (int, True);
    any other target gives (target, False).
    """
    if typing.get_origin(target) in (typing.Union, types.UnionType):
        arguments = typing.get_args(target)
        remaining = tuple(argument for argument in arguments if argument is not types.NoneType)
        if len(arguments) == 2 and len(remaining) == 1:
            return remaining[0], True
    return target, False


class Converters(MutableMapping):
    """
    target type -> converter registry.

    lookup order (see resolve)
    - an exact entry for the type;
    - Enum subclasses, by member name then by value;
    - otherwise the type itself, called with the raw string.
    """

    def __init__(self, converters=(), /):
        self._converters = {}
        self._defaults = {}
        self.update(converters)

    def __getitem__(self, target):
        return self._converters[target]

    def __setitem__(self, target, converter):
        if not callable(converter):
            raise TypeError("converter for %s must be callable" % typename(target))
        logger.debug("Registered converter for %s", typename(target))
        self._converters[target] = converter

    def __delitem__(self, target):
        del self._converters[target]
        self._defaults.pop(target, None)

    def __iter__(self):
        return iter(self._converters)

    def __len__(self):
        return len(self._converters)

    def register(self, target, converter, /, default=Unset):
        """register a converter and, optionally, the value used when no token is present."""
        self[target] = converter
        if default is not Unset:
            self._defaults[target] = default
        return converter

    def default(self, target, /):
        """value for a missing token; None when the type registered none."""
        return self._defaults.get(target)

    def resolve(self, target, /):
        try:
            return self[target]
        except KeyError:
            pass
        if isinstance(target, type) and issubclass(target, enum.Enum):
            return _parse_enum(target)
        if not callable(target):
            raise TypeError("no converter registered for %s" % typename(target))
        return target

    @classmethod
    def standard(cls):
        """registry preloaded with the builtin scalar types and pathlib.Path."""
        self = cls()
        self.register(str, str)
        self.register(bool, _parse_bool, default=False)
        self.register(int, int, default=0)
        self.register(float, float, default=0.0)
        self.register(complex, complex, default=0j)
        self.register(decimal.Decimal, decimal.Decimal, default=decimal.Decimal(0))
        self.register(fractions.Fraction, fractions.Fraction, default=fractions.Fraction(0))
        self.register(pathlib.Path, pathlib.Path)
        return self


class Coercer:
    """
    convert raw tokens for options.

    parameters
    - converters: Converters registry to resolve converters and defaults from;
      a fresh Converters.standard() when omitted.
    """

    def __init__(self, converters=None):
        self.converters = Converters.standard() if converters is None else converters

    def coerce(self, raw, target, context, /):
        """
        convert raw into target for the option described by context.

        context must expose option_name and localizer (see OptionContext).

        returns
        - the converted value; the type's default when raw is None.

        raises
        - OptionValueError when the converter fails.
        - TypeError when no converter can be resolved for target.
        """
        effective, optional = unwrap(target)
        if raw is None:
            return None if optional else self.converters.default(effective)

        name = typename(effective)
        converter = self.converters.resolve(effective)
        try:
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always")
                result = converter(raw)
        except Exception as exception:
            logger.debug("Conversion of %r to %s failed for option %r: %s", raw, name, context.option_name, exception)
            raise OptionValueError(
                context.localizer(CONVERSION_TEMPLATE).format(raw, name, context.option_name),
                title="conversion error",
                code=FaultCode.UNCONVERTIBLE_VALUE,
                option=context.option_name,
                value=raw,
                typename=name,
                hint="use a valid %s for %r" % (name, context.option_name),
                docs=getdoc(FaultCode.UNCONVERTIBLE_VALUE),
            ) from exception

        for warning in caught:
            trigger(OptionValueWarning(
                "value %r for option %r raised a conversion warning: %s" % (raw, context.option_name, warning.message),
                title="conversion warning",
                code=FaultCode.CONVERSION_WARNING,
                option=context.option_name,
                value=raw,
                typename=name,
                hint="check the value format for %r; expected %s" % (context.option_name, name),
                docs=getdoc(FaultCode.CONVERSION_WARNING),
                warning=warning.message,
            ))
        return result


coercer = Coercer()


__all__ = (
    "CONVERSION_TEMPLATE",
    "Converters",
    "Coercer",
    "coercer",
    "typename",
    "unwrap",
)
