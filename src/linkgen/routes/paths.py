from __future__ import annotations

import re
from typing import Iterable

from linkgen.routes.specs import PathParameter

_PARAM_SEGMENT = re.compile(r"^\{(\*?)([A-Za-z_][A-Za-z0-9_]*)\}$")
_ALLOWED_CHARS = re.compile(r"^[A-Za-z0-9\-._~!$&'()*+,;=:@%/{}]*$")


class InvalidPathError(ValueError):
    pass


def validate_path_literal(path: str) -> None:
    """
    Reject path literals the generators cannot represent.

    Placeholders must fill a whole segment: "/users/{id}" is fine,
    "/files/{name}.json" and "/a/{b" are not. Axum catch-all "{*rest}" is accepted.
    """
    if not _ALLOWED_CHARS.match(path):
        bad = sorted({c for c in path if not _ALLOWED_CHARS.match(c)})
        raise InvalidPathError(f"path {path!r} contains unsupported characters {''.join(bad)!r}")
    for seg in path.split("/"):
        if "{" not in seg and "}" not in seg:
            continue
        if not _PARAM_SEGMENT.match(seg):
            raise InvalidPathError(f"path {path!r} has a malformed parameter segment {seg!r}")


def split_segments(path: str) -> list[str]:
    return [s for s in path.strip().split("/") if s]


def resolve_path(prefix_chain: Iterable[str], path: str) -> str:
    """Concatenate prefixes (root to leaf) and the route's own path literal."""
    segments: list[str] = []
    for part in (*prefix_chain, path):
        segments.extend(split_segments(part))
    return "/" + "/".join(segments)


def strip_name_prefix(path: str, prefix: str | None) -> str:
    """
    Remove a configured prefix from a path on a segment boundary.
    Used for naming only; emitted paths always keep the full path.

      strip_name_prefix("/api/users", "/api")  -> "/users"
      strip_name_prefix("/apix/users", "/api") -> "/apix/users"
    """
    if not prefix:
        return path
    want = split_segments(prefix)
    have = split_segments(path)
    if want and have[: len(want)] == want:
        return "/" + "/".join(have[len(want):])
    return path


def param_name(segment: str) -> str | None:
    m = _PARAM_SEGMENT.match(segment)
    return m.group(2) if m else None


def path_parameters(path: str) -> list[PathParameter]:
    out: list[PathParameter] = []
    for seg in split_segments(path):
        name = param_name(seg)
        if name is not None:
            out.append(PathParameter(name=name, position=len(out)))
    return out
