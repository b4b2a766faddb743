from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Collection, Iterable, Optional

from linkgen.errors import DuplicateRouteWarning, NameCollisionError
from linkgen.routes.specs import HttpMethod, RouteInfo


@dataclass(frozen=True)
class DetectResult:
    accepted: tuple[RouteInfo, ...]
    warnings: tuple[DuplicateRouteWarning, ...]


def filter_duplicates(routes: Iterable[RouteInfo]) -> DetectResult:
    """
    Keep the earliest declaration of each (method, final_path).
    Every discarded repeat produces one DuplicateRouteWarning.
    """
    kept: dict[tuple[HttpMethod, str], RouteInfo] = {}
    accepted: list[RouteInfo] = []
    warnings: list[DuplicateRouteWarning] = []

    for route in sorted(routes, key=lambda r: r.source_order_index):
        first = kept.get(route.key)
        if first is not None:
            warnings.append(DuplicateRouteWarning(kept=first, discarded=route))
            continue
        kept[route.key] = route
        accepted.append(route)

    return DetectResult(accepted=tuple(accepted), warnings=tuple(warnings))


def check_name_collisions(
    routes: Iterable[RouteInfo],
    derive: Optional[Callable[[RouteInfo], str]] = None,
    kind: str = "variant name",
) -> None:
    """
    Raise NameCollisionError when two distinct routes share a generated name.

    `derive` maps a route to the name being checked (default: variant_name),
    which lets emitters check the identifiers they derive from it.
    """
    derive = derive or (lambda r: r.variant_name)
    owners: dict[str, RouteInfo] = {}
    for route in sorted(routes, key=lambda r: r.source_order_index):
        name = derive(route)
        first = owners.get(name)
        if first is not None and first.key != route.key:
            raise NameCollisionError(name, first, route, kind=kind)
        owners.setdefault(name, route)


def check_reserved_names(
    routes: Iterable[RouteInfo],
    derive: Callable[[RouteInfo], Iterable[str]],
    reserved: Collection[str],
    kind: str,
) -> None:
    """Raise NameCollisionError when a route would declare a name the output already uses."""
    for route in sorted(routes, key=lambda r: r.source_order_index):
        for name in derive(route):
            if name in reserved:
                raise NameCollisionError(name, route, kind=kind)


def detect(routes: Iterable[RouteInfo]) -> DetectResult:
    result = filter_duplicates(routes)
    check_name_collisions(result.accepted)
    return result
