"""
Protopt faults (errors and warnings) and rendering.

Scope
- FaultCode: stable numeric identifiers for every issue the package can raise.
  Codes are grouped by domain: declaration (21xxx), coercion (22xxx) and
  warnings (23xxx).
- OptionFault / OptionWarning: base types that carry a message plus read-only
  options (code, title, hint and payload) and know how to render themselves
  through rich.
- trigger(): central entry point to surface a fault (raise/warn, or print when
  running in shell mode).
- getdoc(): optional description lookup for a code from the host application.

Taxonomy
- declaration faults are programmer errors in a prototype; they are raised while
  the option is being built and no partially built option escapes.
  • NullPrototypeError is also a TypeError.
  • every other declaration fault derives from OptionSpecError (a ValueError).
- OptionValueError is the only runtime fault: a raw token could not be
  converted. It keeps the converter's exception as __cause__.

Host integration
- __main__ may define __styles__ (rich style overrides), __codes__ (code
  relabelling), __docs__ (per-code docs) and __prog__ (header program name).
"""
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - declaration (211xx / 212xx)
      • NULL_PROTOTYPE, EMPTY_PROTOTYPE, VALUE_COUNT_RANGE
      • EMPTY_ALIAS, CONFLICTING_MARKERS, MALFORMED_SEPARATOR, UNEXPECTED_SEPARATORS
      • FLAG_MARKER, MULTI_VALUE_MARKER, DEFAULT_OPTION_VALUE
    - coercion (221xx)
      • UNCONVERTIBLE_VALUE
    - warnings (231xx)
      • CONVERSION_WARNING
    """
    # --- prototype arguments (211xx) ---
    NULL_PROTOTYPE              = 21101
    EMPTY_PROTOTYPE             = 21102
    VALUE_COUNT_RANGE           = 21103

    # --- prototype grammar (211xx) ---
    EMPTY_ALIAS                 = 21111
    CONFLICTING_MARKERS         = 21112
    MALFORMED_SEPARATOR         = 21113
    UNEXPECTED_SEPARATORS       = 21114

    # --- disposition rules (212xx) ---
    FLAG_MARKER                 = 21201
    MULTI_VALUE_MARKER          = 21202
    DEFAULT_OPTION_VALUE        = 21203

    # --- coercion (221xx) ---
    UNCONVERTIBLE_VALUE         = 22101

    # --- warnings (231xx) ---
    CONVERSION_WARNING          = 23101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, defaults, kind):
    """
    build the rich renderable shared by errors and warnings.

    layout: "[ prog — code | title ]" header, message body, hint line. with
    fancy=True the body is wrapped in a panel titled by the header.
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", True)
    styles = defaultdict(str, defaults | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if colorful else "")

    code = options.get("code")
    header = Text.assemble(
        "[ ",
        text(getattr(main, "__prog__", options.get("prog", "protopt")), "prog-name"),
        " — ",
        text(code.normalize() if isinstance(code, FaultCode) else "?", "code"),
        " | ",
        text(str(options.get("title", kind)).title(), kind + "-title"),
        " ]"
    )
    message = text(coalesce(fault.message, ""), kind + "-message")
    hint = Text.assemble(text(" → ", "hint-arrow"), text(options.get("hint"), "hint"))

    if options.get("fancy", False):
        return Panel(Group(message, hint), title=header, title_align="left")
    return Group(header, message, hint)


class OptionFault(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        }, "error")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from self.__cause__
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        clone = type(self)(self.message, **{**self.options, **overrides})
        clone.__cause__ = self.__cause__
        return clone


class OptionSpecError(OptionFault, ValueError):
    """base for every ill-formed declaration (prototype, count or disposition)."""


class NullPrototypeError(OptionFault, TypeError): ...
class EmptyPrototypeError(OptionSpecError): ...
class ValueCountRangeError(OptionSpecError): ...
class EmptyAliasError(OptionSpecError): ...
class ConflictingMarkersError(OptionSpecError): ...
class MalformedSeparatorError(OptionSpecError): ...
class UnexpectedSeparatorsError(OptionSpecError): ...
class FlagMarkerError(OptionSpecError): ...
class MultiValueMarkerError(OptionSpecError): ...
class DefaultOptionValueError(OptionSpecError): ...


class OptionValueError(OptionFault):
    """
    a captured token could not be converted for an option.

    payload (also present in options)
    - option: display name of the option being processed.
    - value: the offending raw string.
    - typename: display name of the effective target type.
    """

    @property
    def option(self):
        return self.options.get("option")

    @property
    def value(self):
        return self.options.get("value")

    @property
    def typename(self):
        return self.options.get("typename")


class OptionWarning(Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "warning-title": "bold #FFC2E0",
            "warning-message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        }, "warning")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class OptionValueWarning(OptionWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into a copy of the fault via __replace__(**options).
    - errors are raised (shell=False) or printed to stderr and followed by
      sys.exit(1) (shell=True, unless deferred=True); warnings are emitted with
      warnings.warn or printed.

    typical options
    - shell, fancy, colorful, deferred, title, code, hint, plus payload such as
      option/value/typename.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation for a fault code, looked up in __main__.__docs__.
    returns None when the host provides nothing for the code.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "OptionFault",
    "OptionSpecError",
    "NullPrototypeError",
    "EmptyPrototypeError",
    "ValueCountRangeError",
    "EmptyAliasError",
    "ConflictingMarkersError",
    "MalformedSeparatorError",
    "UnexpectedSeparatorsError",
    "FlagMarkerError",
    "MultiValueMarkerError",
    "DefaultOptionValueError",
    "OptionValueError",
    "OptionWarning",
    "OptionValueWarning",
    "trigger",
    "getdoc",
)
