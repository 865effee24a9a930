"""Identifier helpers for generated code.

Schema names come in several spellings: upper-case command names with
spaces (``CLIENT KILL``), kebab- and snake-case argument names
(``unix-time-seconds``, ``key_or_empty_string``), and upper-case wire
tokens (``WITHSCORES``). Generated code needs two spellings:

* :func:`to_snake` -- method, parameter, and field names.
* :func:`to_camel` -- derived type and variant names.

Both always return a valid, non-keyword Python identifier.
"""

from __future__ import annotations

import keyword
import re

# Upper-case runs before a capitalised word, capitalised words, then any
# remaining alphanumeric run ("HTTPServer" -> HTTP, Server).
_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z0-9]+|[A-Z0-9]+")

# Wire tokens that are pure punctuation (XADD ids, XTRIM thresholds).
_SYMBOL_NAMES: dict[str, str] = {
    "*": "Star",
    "=": "Equals",
    "~": "Approx",
    "$": "LastId",
}


def split_words(name: str) -> list[str]:
    """Split *name* into words on separators and case boundaries.

    Example::

        >>> split_words("key_or_empty-string")
        ['key', 'or', 'empty', 'string']
        >>> split_words("ZREMRANGEBYLEX")
        ['ZREMRANGEBYLEX']
        >>> split_words("petId")
        ['pet', 'Id']
    """
    return _WORD_RE.findall(name)


def to_snake(name: str) -> str:
    """Convert a schema name to a ``lower_snake`` Python identifier.

    Python keywords get a trailing underscore per PEP 8 convention, and a
    leading digit gets an underscore prefix.

    Example::

        >>> to_snake("CLIENT KILL")
        'client_kill'
        >>> to_snake("unix-time-seconds")
        'unix_time_seconds'
        >>> to_snake("from")
        'from_'
    """
    ident = "_".join(word.lower() for word in split_words(name)) or "arg"
    return _fix_identifier(ident)


def to_camel(name: str) -> str:
    """Convert a schema name or wire token to an ``UpperCamel`` identifier.

    Example::

        >>> to_camel("NX")
        'Nx'
        >>> to_camel("key_or_empty_string")
        'KeyOrEmptyString'
        >>> to_camel("*")
        'Star'
    """
    if name in _SYMBOL_NAMES:
        return _SYMBOL_NAMES[name]
    ident = "".join(word[:1].upper() + word[1:].lower() for word in split_words(name))
    return _fix_identifier(ident or "Arg")


def _fix_identifier(ident: str) -> str:
    if ident[0].isdigit():
        ident = f"_{ident}"
    if keyword.iskeyword(ident):
        ident = f"{ident}_"
    return ident
