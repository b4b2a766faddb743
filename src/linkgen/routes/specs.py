from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"

    @property
    def is_query(self) -> bool:
        # safe methods are fetched with query hooks, everything else is a mutation
        return self in (HttpMethod.GET, HttpMethod.HEAD, HttpMethod.OPTIONS)

    @classmethod
    def from_token(cls, token: str) -> Optional["HttpMethod"]:
        try:
            return cls(token.upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class HandlerInfo:
    """What a handler function tells the client about its request and response."""

    body_type: Optional[str] = None
    requires_auth: bool = False
    return_type: Optional[str] = None


@dataclass(frozen=True)
class RouteRecord:
    """Raw route declaration as found by the scanner. Folded into a RouteInfo."""

    http_method: HttpMethod
    raw_path_segment: str                  # path literal exactly as declared
    handler_identifier: str
    declaring_file: str                    # path relative to controllers_path, forward slashes
    declared_prefix_chain: tuple[str, ...] = ()
    declaration_index: int = 0             # order within declaring_file
    line: int = 0
    handler_info: HandlerInfo = field(default_factory=HandlerInfo)

    @property
    def sort_key(self) -> tuple[str, int]:
        return (self.declaring_file, self.declaration_index)


@dataclass(frozen=True)
class PathParameter:
    name: str
    position: int


@dataclass(frozen=True)
class RouteInfo:
    """
    Canonical representation of one route, consumed by every emitter.

    field_names[i] is the generated identifier of parameters[i]; both follow the
    left-to-right order of the {param} placeholders in final_path.
    """

    method: HttpMethod
    final_path: str
    variant_name: str
    field_names: tuple[str, ...]
    source_order_index: int

    parameters: tuple[PathParameter, ...] = ()
    handler: str = ""
    declaring_file: str = ""
    handler_info: HandlerInfo = field(default_factory=HandlerInfo)

    @property
    def key(self) -> tuple[HttpMethod, str]:
        return (self.method, self.final_path)

    def render_path(self, values: dict[str, str]) -> str:
        """Substitute field values into the path, e.g. {"user_id": "1"} -> /users/1."""
        segments = []
        by_name = dict(zip((p.name for p in self.parameters), self.field_names))
        for seg in self.final_path.split("/"):
            if seg.startswith("{") and seg.endswith("}"):
                seg = values[by_name[seg[1:-1].lstrip("*")]]
            segments.append(seg)
        return "/".join(segments) or "/"
