r"""
Protopt option declarations.

Overview
- Option: abstract, immutable declaration built from a prototype string
  (e.g., "o|output="), a description and a maximum value count. Construction
  parses the prototype, applies the disposition rules, and either yields a
  fully built option or raises a declaration fault.
- Variants (closed set, sealed against subclassing)
  • Switch: presence-only (max 0 values); handler receives True/False.
  • ValueOption[_T]: one value, coerced to 'type'.
  • MultiValueOption[_T]: exactly 'count' values (>= 2), each coerced to 'type'.
  • KeyValueOption[_K, _V]: a key and a value, coerced to 'key_type'/'value_type'.
- OptionContext: what the dispatch loop hands to Option.visit for a match: the
  display name, the captured raw tokens, the message-template lookup and the
  coercer.
- Decorators: switch/value_option/multi_value_option/key_value_option bind a
  handler to a freshly declared option.

Disposition rules (checked after the grammar)
- a marker needs max_value_count >= 1 (FlagMarkerError);
- a marker allows at most one value (MultiValueMarkerError);
- the default option "<>" never takes values: not as the only alias carrying a
  marker, nor among several aliases with max_value_count > 1
  (DefaultOptionValueError).

Quick example
    >>> received = []
    >>> @value_option("n|count=", "number of retries", type=int)
    ... def on_count(count):
    ...     received.append(count)
    >>> on_count.visit(OptionContext(on_count, "--count", ["3"]))
    >>> received
    [3]
"""
import abc
import builtins
import logging
import re

from .coercion import coercer as default_coercer, unwrap
from .faults import *
from .grammar import DEFAULT_OPTION, ValueDisposition, parse_prototype
from .utils import *

logger = logging.getLogger(__name__)


class OptionType(abc.ABCMeta):
    """
    Metaclass for option declarations.

    Responsibilities
    - derive __typename__ from the class name ("KeyValueOption" -> "key-value-option")
      for messages and representations.
    - expose every name in the class' own __introspectable__ as a read-only
      property via mirror().
    - seal variants declared with `final=True` against subclassing.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, *, final=False, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                field: mirror(field) for field in namespace.get("__introspectable__", ())
                if field not in namespace
            },
            **options
        )

        if final:
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _sanitize_arguments(cls, prototype, max_value_count, /):
    if prototype is None:
        raise NullPrototypeError(
            "%s 'prototype' cannot be None" % cls.__typename__,
            title="missing prototype",
            code=FaultCode.NULL_PROTOTYPE,
            hint="declare at least one alias, e.g. \"v|verbose\"",
            docs=getdoc(FaultCode.NULL_PROTOTYPE),
        )
    if not isinstance(prototype, str):
        raise TypeError(f"{cls.__typename__} 'prototype' must be a string")
    if not prototype:
        raise EmptyPrototypeError(
            "%s 'prototype' cannot be the empty string" % cls.__typename__,
            title="empty prototype",
            code=FaultCode.EMPTY_PROTOTYPE,
            prototype=prototype,
            hint="declare at least one alias, e.g. \"v|verbose\"",
            docs=getdoc(FaultCode.EMPTY_PROTOTYPE),
        )
    if not isinstance(max_value_count, int) or isinstance(max_value_count, bool):
        raise TypeError(f"{cls.__typename__} 'max_value_count' must be an integer")
    if max_value_count < 0:
        raise ValueCountRangeError(
            "%s 'max_value_count' must be non-negative, got %d" % (cls.__typename__, max_value_count),
            title="value count out of range",
            code=FaultCode.VALUE_COUNT_RANGE,
            prototype=prototype,
            hint="use 0 for flags, 1 for a single value, more for multiple values",
            docs=getdoc(FaultCode.VALUE_COUNT_RANGE),
        )


def _validate_disposition(cls, prototype, parsed, max_value_count, /):
    """
    Internal: reject dispositions that contradict the value count.

    Parameters
    - cls: the option class, used for typename in diagnostics.
    - prototype: the raw declaration string.
    - parsed: grammar.Prototype returned by parse_prototype.
    - max_value_count: the caller-supplied maximum.
    """
    marked = parsed.disposition is not ValueDisposition.UNSET

    if max_value_count == 0 and marked:
        raise FlagMarkerError(
            "cannot provide 'max_value_count' of 0 for %s or %s"
            % (ValueDisposition.REQUIRED, ValueDisposition.OPTIONAL),
            title="flag with value marker",
            code=FaultCode.FLAG_MARKER,
            prototype=prototype,
            hint="remove the %r marker or allow a value" % parsed.disposition.value,
            docs=getdoc(FaultCode.FLAG_MARKER),
        )

    if marked and max_value_count > 1:
        raise MultiValueMarkerError(
            "cannot provide 'max_value_count' of %d for %s" % (max_value_count, parsed.disposition),
            title="multi-value option with value marker",
            code=FaultCode.MULTI_VALUE_MARKER,
            prototype=prototype,
            hint="value markers are only valid for options taking at most one value",
            docs=getdoc(FaultCode.MULTI_VALUE_MARKER),
        )

    if DEFAULT_OPTION in parsed.names and (
        (len(parsed.names) == 1 and marked) or
        (len(parsed.names) > 1 and max_value_count > 1)
    ):
        raise DefaultOptionValueError(
            "the default option handler %r cannot require values" % DEFAULT_OPTION,
            title="default option with values",
            code=FaultCode.DEFAULT_OPTION_VALUE,
            prototype=prototype,
            hint="declare %r on its own, without a marker" % DEFAULT_OPTION,
            docs=getdoc(FaultCode.DEFAULT_OPTION_VALUE),
        )


class OptionContext:
    """
    One match reported by the dispatch loop.

    Attributes
    - option: the Option that matched.
    - option_name: display name used in messages (defaults to the first alias).
    - values: captured raw tokens, in order (None marks an absent token).
    - localizer: message-template lookup, template -> translated template.
    - coercer: Coercer used to convert the captured tokens.
    """
    __slots__ = ("option", "option_name", "values", "localizer", "coercer")

    def __init__(self, option, option_name=Unset, values=(), localizer=str, coercer=default_coercer):
        self.option = option
        if isinstance(values, str):
            raise TypeError("option-context 'values' must be an iterable of tokens, not a string")
        self.option_name = coalesce(option_name, option.get_names()[0])
        self.values = list(values)
        self.localizer = localizer
        self.coercer = coercer

    def coerce(self, raw, target, /):
        return self.coercer.coerce(raw, target, self)

    def __repr__(self):
        return f"option-context(option_name={self.option_name!r}, values={self.values!r})"


class Option(metaclass=OptionType):
    """
    Immutable option declaration.

    Fields (read-only; containers are returned as fresh lists)
    - prototype: the declaration string, verbatim.
    - names: aliases in declaration order, markers stripped.
    - description: free-form help text or None.
    - disposition: ValueDisposition.UNSET | OPTIONAL | REQUIRED.
    - max_value_count: 0 flag, 1 single value, > 1 multiple values.
    - separators: tokens used to split a captured argument, [] when none apply.

    Subclasses implement _on_visitation(context); visit() delegates to it and
    leaves the declaration untouched.
    """

    __introspectable__ = (
        "prototype",
        "names",
        "description",
        "disposition",
        "max_value_count",
    )

    def __init__(self, prototype, description=None, max_value_count=1):
        cls = type(self)
        _sanitize_arguments(cls, prototype, max_value_count)
        parsed = parse_prototype(prototype, max_value_count)
        _validate_disposition(cls, prototype, parsed, max_value_count)

        self._prototype = prototype
        self._names = parsed.names
        self._description = description
        self._disposition = parsed.disposition
        self._max_value_count = max_value_count
        self._separators = parsed.separators
        logger.debug("Declared %s %r (%s, max %d)", cls.__typename__, prototype, parsed.disposition.name, max_value_count)

    @property
    def separators(self):
        return list(self._separators or ())

    @property
    def splits(self):
        """whether captured arguments are split on separators before coercion."""
        return bool(self._separators)

    def get_names(self):
        return self.names

    def get_separators(self):
        return self.separators

    def visit(self, context, /):
        """
        Entry point for the dispatch loop, called once per matched occurrence.

        Conversion failures propagate as OptionValueError; the caller decides
        whether to abort or continue the pass.
        """
        self._on_visitation(context)

    @abc.abstractmethod
    def _on_visitation(self, context, /):
        raise NotImplementedError

    def _dispatch(self, *values):
        if self._callback is not Unset:
            self._callback(*values)

    def __str__(self):
        return self._prototype

    def __repr__(self):
        return f"{type(self).__typename__}({
            ", ".join("%s=%r" % item for item in self.__rich_repr__())
        })"

    def __rich_repr__(self):
        for name in type(self).__introspectable__:
            yield name, getattr(self, name)
        yield "separators", self.separators


def _sanitize_callback(cls, callback, /):
    if callback is not Unset and not callable(callback):
        raise TypeError(f"{cls.__typename__} 'callback' must be callable")
    return callback


def _sanitize_type(cls, name, target, /):
    if not callable(unwrap(target)[0]):
        raise TypeError(f"{cls.__typename__} {name!r} must be a type or a converter callable")
    return target


class Switch(Option, final=True):
    """
    Presence-only option (no values).

    The handler receives True when the switch is present, or False when the
    dispatch loop reports it explicitly disabled (a single None value).
    """

    def __init__(self, prototype, description=None, *, callback=Unset):
        super().__init__(prototype, description, 0)
        self._callback = _sanitize_callback(type(self), callback)

    def _on_visitation(self, context, /):
        self._dispatch(not context.values or context.values[0] is not None)


class ValueOption[_T](Option, final=True):
    """
    Option taking at most one value, converted to 'type' (str by default).

    Use "name=" for a required value and "name:" for an optional one. A missing
    token is passed to the handler as the default of 'type'.
    """

    __introspectable__ = Option.__introspectable__ + ("type",)

    def __init__(self, prototype, description=None, *, type=str, callback=Unset):
        super().__init__(prototype, description, 1)
        self._type = _sanitize_type(builtins.type(self), "type", type)
        self._callback = _sanitize_callback(builtins.type(self), callback)

    def _on_visitation(self, context, /):
        raw = context.values[0] if context.values else None
        self._dispatch(context.coerce(raw, self._type))


class MultiValueOption[_T](Option, final=True):
    """
    Option taking exactly 'count' values (at least two), each converted to
    'type'. The handler receives them positionally, in capture order; missing
    tokens become the default of 'type'.
    """

    __introspectable__ = Option.__introspectable__ + ("type",)

    def __init__(self, prototype, description=None, count=2, *, type=str, callback=Unset):
        if isinstance(count, int) and not isinstance(count, bool) and count < 2:
            raise ValueCountRangeError(
                "%s 'count' must be at least 2, got %d" % (builtins.type(self).__typename__, count),
                title="value count out of range",
                code=FaultCode.VALUE_COUNT_RANGE,
                prototype=prototype,
                hint="use value-option for a single value",
                docs=getdoc(FaultCode.VALUE_COUNT_RANGE),
            )
        super().__init__(prototype, description, count)
        self._type = _sanitize_type(builtins.type(self), "type", type)
        self._callback = _sanitize_callback(builtins.type(self), callback)

    def _on_visitation(self, context, /):
        raws = list(context.values[:self._max_value_count])
        raws += [None] * (self._max_value_count - len(raws))
        self._dispatch(*(context.coerce(raw, self._type) for raw in raws))


class KeyValueOption[_K, _V](Option, final=True):
    """
    Option taking a key and a value (e.g., -Dname value), converted to
    'key_type' and 'value_type' respectively.
    """

    __introspectable__ = Option.__introspectable__ + ("key_type", "value_type")

    def __init__(self, prototype, description=None, *, key_type=str, value_type=str, callback=Unset):
        super().__init__(prototype, description, 2)
        self._key_type = _sanitize_type(type(self), "key_type", key_type)
        self._value_type = _sanitize_type(type(self), "value_type", value_type)
        self._callback = _sanitize_callback(type(self), callback)

    def _on_visitation(self, context, /):
        values = context.values
        key = context.coerce(values[0] if len(values) > 0 else None, self._key_type)
        value = context.coerce(values[1] if len(values) > 1 else None, self._value_type)
        self._dispatch(key, value)


def _decorator(cls, name, /):
    """
    Build a decorator factory that declares a cls option and binds the
    decorated function as its handler (once).
    """

    @rename(name)
    def factory(*args, **kwargs):
        option = cls(*args, **kwargs)

        @rename(name)
        def wrapper(callback, /):
            if not callable(callback):
                raise TypeError(f"@{name}() must be applied to a callable")
            if option._callback is not Unset:  # NOQA: E-501
                raise TypeError(f"@{name}() must be applied only once")
            option._callback = callback
            return option

        return wrapper

    return factory


switch = _decorator(Switch, "switch")
value_option = _decorator(ValueOption, "value_option")
multi_value_option = _decorator(MultiValueOption, "multi_value_option")
key_value_option = _decorator(KeyValueOption, "key_value_option")


__all__ = (
    # Classes
    "Option",
    "OptionContext",
    "Switch",
    "ValueOption",
    "MultiValueOption",
    "KeyValueOption",

    # Decorators
    "switch",
    "value_option",
    "multi_value_option",
    "key_value_option",
)

del OptionType
