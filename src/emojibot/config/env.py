"""Helpers for reading typed values from an environment mapping.

Boolean parsing is deliberately strict: only a fixed, case-sensitive set of
tokens is accepted, and anything else is reported instead of guessed. Every
lookup takes an optional ``environ`` mapping; when omitted the live process
environment is read on each call.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping

from emojibot.utils.log import get_logger

_LOGGER = get_logger(__name__)

_TRUTHY_VALUES: frozenset[str] = frozenset({"true", "True", "1"})
_FALSY_VALUES: frozenset[str] = frozenset({"false", "False", "0"})


class InvalidBoolError(ValueError):
    """Environment variable is set but is not a recognized boolean token."""

    def __init__(self, key: str, value: str) -> None:
        super().__init__(f"{key}={value!r} did not convert properly to boolean")
        self.key = key
        self.value = value


def _source(environ: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if environ is None else environ


def get_or_default(key: str, default: str, environ: Mapping[str, str] | None = None) -> str:
    """Return the value of ``key`` (even if empty) or ``default`` when unset."""
    source = _source(environ)
    if key in source:
        return source[key]
    return default


def to_bool(raw: str) -> tuple[bool, bool]:
    """Convert ``raw`` to ``(value, ok)``.

    ``true``/``True``/``1`` and ``false``/``False``/``0`` convert; any other
    string, including ``TRUE``, ``yes`` and ``""``, returns ``(False, False)``.
    """
    if raw in _TRUTHY_VALUES:
        return True, True
    if raw in _FALSY_VALUES:
        return False, True
    return False, False


def get_bool_or_default(
    key: str, default: bool, environ: Mapping[str, str] | None = None
) -> bool:
    """Read ``key`` as a boolean, returning ``default`` when it is unset.

    Raises:
        InvalidBoolError: the variable is set to something ``to_bool`` rejects.
    """
    source = _source(environ)
    if key not in source:
        return default

    raw = source[key]
    value, ok = to_bool(raw)
    if not ok:
        raise InvalidBoolError(key, raw)
    return value


def lookup_flag(
    key: str,
    default: bool = False,
    environ: Mapping[str, str] | None = None,
    *,
    strict: bool = False,
) -> bool:
    """Boolean flag lookup with an explicit policy for malformed values.

    Lenient (default): a malformed value is logged and ``default`` is used.
    Strict: the ``InvalidBoolError`` propagates to the caller.
    """
    try:
        return get_bool_or_default(key, default, environ)
    except InvalidBoolError as exc:
        if strict:
            raise
        _LOGGER.warning("ignoring malformed flag, using default=%s: %s", default, exc)
        return default


class EnvSnapshot(Mapping[str, str]):
    """Read-only copy of an environment that is refreshed only on ``reload()``."""

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(os.environ if values is None else values)

    def reload(self, values: Mapping[str, str] | None = None) -> None:
        # Single reference swap; readers see either the old or the new copy.
        self._values = dict(os.environ if values is None else values)
        _LOGGER.info("environment snapshot reloaded (%d keys)", len(self._values))

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"EnvSnapshot({len(self._values)} keys)"
