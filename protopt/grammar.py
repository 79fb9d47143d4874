r"""
Protopt prototype grammar.

Grammar
    prototype      := alias ('|' alias)*
    alias          := plain-name [marker [separator-spec]]
    marker         := '=' | ':'            ; '=' required value, ':' optional value
    separator-spec := (brace-token | single-char)*
    brace-token    := '{' any-chars-except-'}' '}'
    single-char    := any character other than '{' or '}'

What this module provides
- ValueDisposition: UNSET (pure flag), OPTIONAL (':'), REQUIRED ('=').
- scan_separators(alias, suffix): separator spec -> ordered token list.
- parse_prototype(prototype, max_value_count): prototype -> Prototype, a frozen
  result holding the stripped aliases, the disposition and the resolved
  separators. Nothing is mutated in place; the caller receives new tuples.

Separator resolution (only when a marker was found and max_value_count > 1)
- no tokens               -> (",",)   default comma splitting
- one non-empty token     -> None     no splitting, each captured token is a value
- anything else           -> explicit tuple, in declaration order

Quick example
    >>> parse_prototype("o|output=", 1)
    Prototype(names=('o', 'output'), disposition=<ValueDisposition.REQUIRED: '='>, separators=())
    >>> scan_separators("D={::}", "a{::}b")
    ['a', '::', 'b']
"""
import enum
from typing import NamedTuple

from .faults import *

ALIAS_SEPARATOR = "|"
DEFAULT_OPTION = "<>"
DEFAULT_SEPARATORS = (",",)


class ValueDisposition(enum.Enum):
    """whether an option takes a value; members carry their marker character."""
    UNSET = ""
    OPTIONAL = ":"
    REQUIRED = "="


MARKERS = frozenset(member.value for member in ValueDisposition if member.value)


class Prototype(NamedTuple):
    names: tuple[str, ...]
    disposition: ValueDisposition
    separators: tuple[str, ...] | None


def _malformed(alias, prototype=None):
    return MalformedSeparatorError(
        "ill-formed name/value separator found in %r" % alias,
        title="malformed separator",
        code=FaultCode.MALFORMED_SEPARATOR,
        prototype=prototype,
        alias=alias,
        hint="balance every '{' with a '}' and do not nest them",
        docs=getdoc(FaultCode.MALFORMED_SEPARATOR),
    )


def scan_separators(alias, suffix, /, *, prototype=None):
    """
    split the text following a marker into separator tokens.

    rules
    - '{' opens a multi-character capture; '{' inside a capture is illegal.
    - '}' closes the capture and emits its text (possibly empty) as one token;
      '}' without an open capture is illegal.
    - any other character outside a capture is its own token.
    - reaching the end with a capture still open is illegal.

    raises
    - MalformedSeparatorError naming the alias for every illegal condition.
    """
    tokens = []
    start = -1
    for index, char in enumerate(suffix):
        match char:
            case "{":
                if start != -1:
                    raise _malformed(alias, prototype)
                start = index + 1
            case "}":
                if start == -1:
                    raise _malformed(alias, prototype)
                tokens.append(suffix[start:index])
                start = -1
            case _:
                if start == -1:
                    tokens.append(char)
    if start != -1:
        raise _malformed(alias, prototype)
    return tokens


def _resolve_separators(tokens):
    if not tokens:
        return DEFAULT_SEPARATORS
    if len(tokens) == 1 and tokens[0]:
        return None
    return tuple(tokens)


def parse_prototype(prototype, max_value_count=1, /):
    """
    parse a prototype into aliases, disposition and separators.

    aliases are processed in declaration order, which decides both the marker
    reported on a conflict and the order of separator tokens.

    raises
    - EmptyAliasError: an alias is empty before or after stripping its marker.
    - ConflictingMarkersError: two aliases carry different markers.
    - MalformedSeparatorError: unbalanced braces in a separator spec.
    - UnexpectedSeparatorsError: separators declared for max_value_count <= 1.
    """
    names = []
    marker = None
    tokens = []

    for alias in prototype.split(ALIAS_SEPARATOR):
        if not alias:
            raise EmptyAliasError(
                "empty option names are not supported",
                title="empty option name",
                code=FaultCode.EMPTY_ALIAS,
                prototype=prototype,
                hint="remove the stray %r from %r" % (ALIAS_SEPARATOR, prototype),
                docs=getdoc(FaultCode.EMPTY_ALIAS),
            )

        end = next((index for index, char in enumerate(alias) if char in MARKERS), -1)
        if end == -1:
            names.append(alias)
            continue

        if end == 0:
            raise EmptyAliasError(
                "option name %r is empty once its marker is removed" % alias,
                title="empty option name",
                code=FaultCode.EMPTY_ALIAS,
                prototype=prototype,
                alias=alias,
                hint="put the name before the %r marker" % alias[end],
                docs=getdoc(FaultCode.EMPTY_ALIAS),
            )

        names.append(alias[:end])
        if marker is not None and marker != alias[end]:
            raise ConflictingMarkersError(
                "conflicting option types: %r vs. %r" % (marker, alias[end]),
                title="conflicting option types",
                code=FaultCode.CONFLICTING_MARKERS,
                prototype=prototype,
                alias=alias,
                hint="use the same marker ('=' or ':') on every alias",
                docs=getdoc(FaultCode.CONFLICTING_MARKERS),
            )
        marker = alias[end]

        tokens.extend(scan_separators(alias, alias[end + 1:], prototype=prototype))

    if marker is None:
        return Prototype(tuple(names), ValueDisposition.UNSET, ())

    if max_value_count <= 1 and tokens:
        raise UnexpectedSeparatorsError(
            "cannot provide key/value separators for options taking %d value%s"
            % (max_value_count, "" if max_value_count == 1 else "s"),
            title="unexpected separators",
            code=FaultCode.UNEXPECTED_SEPARATORS,
            prototype=prototype,
            hint="drop the characters after the marker",
            docs=getdoc(FaultCode.UNEXPECTED_SEPARATORS),
        )

    separators = _resolve_separators(tokens) if max_value_count > 1 else ()
    return Prototype(tuple(names), ValueDisposition(marker), separators)


__all__ = (
    "ValueDisposition",
    "Prototype",
    "scan_separators",
    "parse_prototype",
    "ALIAS_SEPARATOR",
    "DEFAULT_OPTION",
    "DEFAULT_SEPARATORS",
)
