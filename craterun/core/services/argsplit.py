"""
Argument splitter: raw ``run`` tokens → InvocationRequest.

Grammar::

    run [OPTIONS] <package[@version]> [OPTIONS / ARGS ...] [-- ARGS ...]

Options are recognized before the package specifier. Without a ``--``
separator, everything after the specifier belongs to the binary. With
a separator, known options between the specifier and ``--`` are still
consumed as options, so ``run rg --force -- --version`` works; any
other token in that span, and everything after ``--``, is forwarded
verbatim.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence

from craterun.core.errors import ParseError
from craterun.core.models import InvocationRequest, PackageSpec

logger = logging.getLogger(__name__)

USAGE = (
    "craterun run <package[@version]> [--bin <name>] [-f|--force] "
    "[-q|--quiet] [-s|--build-from-source] [--] [binary-args...]"
)

SEPARATOR = "--"

# flag → InvocationRequest field
_LONG_FLAGS = {
    "--force": "force",
    "--quiet": "quiet",
    "--build-from-source": "build_from_source",
}
_SHORT_FLAGS = {
    "f": "force",
    "q": "quiet",
    "s": "build_from_source",
}
_BIN_OPTION = "--bin"


def _is_plain_name(value: str) -> bool:
    """A bare file name: no directory separators, not `.` or `..`."""
    if value in (".", ".."):
        return False
    separators = {"/", os.sep} | ({os.altsep} if os.altsep else set())
    return not any(sep in value for sep in separators)


def parse_spec(token: str, binary: str | None = None) -> PackageSpec:
    """Parse a ``name[@version]`` token.

    The name and version are the exact substrings around the single
    ``@``; a second ``@`` is rejected.

    Raises:
        ParseError: On an empty name, empty version or extra ``@``,
            or a name or binary that is a path.
    """
    if not token.strip():
        raise ParseError("package specifier cannot be empty")

    parts = token.split("@")
    if len(parts) > 2:
        raise ParseError(
            f"invalid package specifier `{token}`: expected at most one `@version` suffix"
        )

    name = parts[0]
    if not name.strip():
        raise ParseError(f"invalid package specifier `{token}`: package name cannot be empty")

    version = None
    if len(parts) == 2:
        version = parts[1]
        if not version.strip():
            raise ParseError(
                f"invalid package specifier `{token}`: version cannot be empty after `@`"
            )

    if binary is not None and not binary.strip():
        raise ParseError("--bin requires a non-empty binary name")

    if not _is_plain_name(name):
        raise ParseError(f"invalid package name `{name}`: must not be a path")
    if binary is not None and not _is_plain_name(binary):
        raise ParseError(f"invalid binary name `{binary}`: must not be a path")

    return PackageSpec(name=name, version=version, binary=binary)


def _is_option_like(token: str) -> bool:
    return token.startswith("-") and token != SEPARATOR


def _is_known_option(token: str) -> bool:
    if token in _LONG_FLAGS or token == _BIN_OPTION or token.startswith(_BIN_OPTION + "="):
        return True
    if token.startswith("-") and not token.startswith("--") and len(token) > 1:
        return all(ch in _SHORT_FLAGS for ch in token[1:])
    return False


def _consume_option(tokens: Sequence[str], index: int, flags: dict) -> int:
    """Apply the option at ``tokens[index]`` to ``flags``.

    Returns:
        Index of the next unconsumed token.
    """
    token = tokens[index]

    if token in _LONG_FLAGS:
        flags[_LONG_FLAGS[token]] = True
        return index + 1

    if token == _BIN_OPTION:
        if index + 1 >= len(tokens):
            raise ParseError("--bin requires a value")
        flags["binary"] = tokens[index + 1]
        return index + 2

    if token.startswith(_BIN_OPTION + "="):
        flags["binary"] = token[len(_BIN_OPTION) + 1:]
        return index + 1

    if _is_known_option(token):
        for ch in token[1:]:
            flags[_SHORT_FLAGS[ch]] = True
        return index + 1

    raise ParseError(f"unknown option `{token}`")


def split_invocation(tokens: Sequence[str]) -> InvocationRequest:
    """Split raw tokens into an InvocationRequest.

    Args:
        tokens: Everything after ``run`` on the command line.

    Raises:
        ParseError: Unknown option before the specifier, missing
            specifier, ``--`` before the specifier, or a bad specifier.
    """
    tokens = list(tokens)
    separator_at = tokens.index(SEPARATOR) if SEPARATOR in tokens else None
    if separator_at is None:
        head, tail = tokens, []
    else:
        head, tail = tokens[:separator_at], tokens[separator_at + 1:]

    flags: dict = {"force": False, "quiet": False, "build_from_source": False, "binary": None}
    spec_token: str | None = None
    passthrough: list[str] = []

    i = 0
    while i < len(head):
        token = head[i]
        if spec_token is None:
            if _is_option_like(token):
                i = _consume_option(head, i, flags)
                continue
            spec_token = token
            i += 1
            continue

        if separator_at is not None and _is_known_option(token):
            i = _consume_option(head, i, flags)
            continue

        passthrough.append(token)
        i += 1

    if spec_token is None:
        if separator_at is not None:
            raise ParseError("the package specifier must come before `--`")
        raise ParseError("missing package specifier")

    spec = parse_spec(spec_token, binary=flags.pop("binary"))
    request = InvocationRequest(
        spec=spec,
        passthrough_args=tuple(passthrough + tail),
        **flags,
    )
    logger.debug(
        "Parsed invocation: spec=%s force=%s quiet=%s source=%s args=%s",
        spec, request.force, request.quiet, request.build_from_source,
        list(request.passthrough_args),
    )
    return request
