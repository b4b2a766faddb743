from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from linkgen.routes.specs import RouteInfo


class LinkgenError(Exception):
    """Base exception for all fatal generation errors."""

    category = "error"


class ConfigError(LinkgenError):
    """Invalid configuration value. Raised before any file is scanned."""

    category = "config-error"


class GenerationIOError(LinkgenError):
    """A source file could not be read or an artifact could not be written."""

    category = "io-error"

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ScanError(LinkgenError):
    """
    Route declarations of one controller file could not be understood.

    Recoverable: the pipeline collects these, skips the file and keeps going.
    """

    category = "scan-error"

    def __init__(self, file: str, message: str, line: int | None = None) -> None:
        where = f"{file}:{line}" if line is not None else file
        super().__init__(f"{where}: {message}")
        self.file = file
        self.line = line
        self.message = message


class NameCollisionError(LinkgenError):
    """Two different routes would get the same generated identifier."""

    category = "name-collision"

    def __init__(
        self, name: str, first: RouteInfo, second: Optional[RouteInfo] = None, kind: str = "variant name"
    ) -> None:
        where = f"{first.method.value} {first.final_path} ({first.declaring_file})"
        if second is None:
            clash = f"{kind} {name!r} generated for {where} clashes with a name the generated code already uses. "
        else:
            clash = (
                f"{kind} {name!r} is generated for both {where} and "
                f"{second.method.value} {second.final_path} ({second.declaring_file}). "
            )
        super().__init__(
            clash
            + "Enable include_method_in_names, set variant_prefix/variant_suffix "
            "or adjust word_separators to make the names distinct."
        )
        self.name = name
        self.first = first
        self.second = second


class DuplicateRouteWarning(UserWarning):
    """Collected (not raised) when a later route repeats an earlier (method, path)."""

    category = "duplicate-route"

    def __init__(self, kept: RouteInfo, discarded: RouteInfo) -> None:
        super().__init__(
            f"Duplicate route skipped: {discarded.method.value} {discarded.final_path} "
            f"({discarded.declaring_file}, already declared in {kept.declaring_file})"
        )
        self.kept = kept
        self.discarded = discarded
