"""URL routing for the budget API.

Two kinds of route path are supported:

* **Positional** paths such as ``/api/months/bills/payments``. They carry no
  placeholder syntax. When registered with ``has_path_param=True`` the
  parameter positions are inferred from how many segments the request has
  beyond the route, using the ordered :data:`SHAPES` table.
* **Template** paths such as ``/api/months/{month:month}/bills/{id}``, compiled
  to an anchored regex with typed converters.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from billfold._types import Handler

_PARAM_RE = re.compile(r"\{(\w+)(?::(\w+))?\}")

_PARAM_TYPES: dict[str, tuple[str, Callable[[str], Any]]] = {
    "str": (r"[^/]+", str),
    "int": (r"-?\d+", int),
    "month": (r"\d{4}-\d{2}", str),
    "uuid": (
        r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}",
        str,
    ),
    "path": (r".+", str),
}


def split_path(path: str) -> list[str]:
    """Split *path* on ``/`` and drop empty segments."""
    return [segment for segment in path.split("/") if segment]


# ------------------------------------------------------------------
# Positional shapes
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Shape:
    """One way a request may extend a positional route.

    ``prefix_trim`` aligns the route's leading segments with the request's,
    leaving that many trailing route segments out (``None`` skips the
    prefix check). ``pairs`` are extra ``(route_index, request_index)``
    alignments; negative indexes count from the end. A shape that points
    outside either segment list does not fit.
    """

    name: str
    pairs: tuple[tuple[int, int], ...] = ()
    prefix_trim: int | None = None
    literal: tuple[int, str] | None = None
    route_len: int | None = None
    min_route_len: int = 0

    def fits(self, route: list[str], request: list[str]) -> bool:
        n = len(route)
        if self.route_len is not None and n != self.route_len:
            return False
        if n < self.min_route_len:
            return False
        if self.literal is not None:
            index, token = self.literal
            if _at(route, index) != token:
                return False
        if self.prefix_trim is not None:
            for i in range(n - self.prefix_trim):
                if route[i] != request[i]:
                    return False
        for route_index, request_index in self.pairs:
            expected = _at(route, route_index)
            if expected is None or expected != _at(request, request_index):
                return False
        return True


def _at(segments: list[str], index: int) -> str | None:
    if -len(segments) <= index < len(segments):
        return segments[index]
    return None


_ADHOC = (2, "adhoc")
_OCCURRENCES = (3, "occurrences")
_MONTH_THEN_ADHOC = ((0, 0), (1, 1), (2, 3), (3, 4))
_MONTH_ID_OCCURRENCE = ((0, 0), (1, 1), (2, 3), (3, 5))

# Keyed by the number of segments the request has beyond the route.
# Order within a group decides which reading wins when several fit.
SHAPES: dict[int, tuple[Shape, ...]] = {
    0: (Shape("exact", prefix_trim=0),),
    1: (
        # /api/months -> /api/months/2025-01
        Shape("trailing-param", prefix_trim=0),
        # /api/months/summary -> /api/months/2025-01/summary
        Shape("middle-param", prefix_trim=1, pairs=((-1, -1),)),
        # /api/months/adhoc/bills -> /api/months/2025-01/adhoc/bills
        Shape("adhoc-month", literal=_ADHOC, min_route_len=4, pairs=_MONTH_THEN_ADHOC),
    ),
    2: (
        # /api/months/expenses -> /api/months/2025-01/expenses/ID
        Shape("month-and-trailing-id", prefix_trim=1, pairs=((-1, -2),)),
        # /api/months/bills/reset -> /api/months/2025-01/bills/ID/reset
        Shape("month-and-id-before-action", prefix_trim=2, pairs=((-1, -1), (-2, -3))),
        # /api/months/adhoc/bills/make-regular -> /api/months/2025-01/adhoc/bills/ID/make-regular
        Shape(
            "adhoc-action",
            literal=_ADHOC,
            min_route_len=5,
            pairs=(*_MONTH_THEN_ADHOC, (-1, -1)),
        ),
        # /api/months/adhoc/bills -> /api/months/2025-01/adhoc/bills/ID
        Shape("adhoc-trailing-id", literal=_ADHOC, route_len=4, pairs=_MONTH_THEN_ADHOC),
    ),
    3: (
        # /api/months/bills/payments -> /api/months/2025-01/bills/ID/payments/PID
        Shape("month-id-and-subresource-id", pairs=((-1, -2), (2, 3), (0, 0), (1, 1))),
        Shape("month-id-and-action", prefix_trim=2, pairs=((-1, -1), (-2, -3))),
        # /api/months/bills/occurrences/close -> /api/months/2025-01/bills/ID/occurrences/OCC/close
        Shape(
            "occurrence-action",
            literal=_OCCURRENCES,
            route_len=5,
            pairs=(*_MONTH_ID_OCCURRENCE, (4, 7)),
        ),
    ),
    4: (
        Shape(
            "occurrence-trailing-action",
            literal=_OCCURRENCES,
            route_len=5,
            pairs=(*_MONTH_ID_OCCURRENCE, (-1, -1)),
        ),
        # /api/months/bills/occurrences/payments -> .../occurrences/OCC/payments/PID
        Shape(
            "occurrence-payment-id",
            literal=_OCCURRENCES,
            route_len=5,
            pairs=(*_MONTH_ID_OCCURRENCE, (-1, -2)),
        ),
    ),
}


def match_shape(request_path: str, route_path: str, has_path_param: bool) -> Shape | None:
    """Return the first shape under which *request_path* fits *route_path*."""
    route = split_path(route_path)
    request = split_path(request_path)
    if not has_path_param:
        return SHAPES[0][0] if route == request else None

    extra = len(request) - len(route)
    for shape in SHAPES.get(extra, ()):
        if shape.fits(route, request):
            return shape
    return None


def match_path(request_path: str, route_path: str, has_path_param: bool) -> bool:
    """Return ``True`` if *request_path* is an instance of *route_path*."""
    return match_shape(request_path, route_path, has_path_param) is not None


# ------------------------------------------------------------------
# Routes
# ------------------------------------------------------------------


class Route:
    """A single route mapping a method + path to a handler."""

    __slots__ = ("_converters", "_pattern", "handler", "has_path_param", "method", "path")

    def __init__(
        self,
        method: str,
        path: str,
        handler: Handler,
        *,
        has_path_param: bool = False,
    ) -> None:
        self.method = method.upper()
        self.path = path
        self.handler = handler
        self.has_path_param = has_path_param
        self._pattern: re.Pattern[str] | None = None
        self._converters: dict[str, Callable[[str], Any]] = {}
        if _PARAM_RE.search(path):
            self._pattern, self._converters = _compile_pattern(path)

    @property
    def is_template(self) -> bool:
        return self._pattern is not None

    @property
    def parameterized(self) -> bool:
        return self.has_path_param or self.is_template

    def matches(self, path: str) -> bool:
        if self._pattern is not None:
            return self._pattern.match(path) is not None
        return match_path(path, self.path, self.has_path_param)

    def params(self, path: str) -> dict[str, Any]:
        """Return converted template params for *path*.

        Positional routes never extract values, so they yield ``{}``.
        """
        if self._pattern is None:
            return {}
        m = self._pattern.match(path)
        if m is None:
            return {}
        return {name: self._converters[name](value) for name, value in m.groupdict().items()}

    def __repr__(self) -> str:
        suffix = ", has_path_param=True" if self.has_path_param else ""
        return f"Route({self.method!r}, {self.path!r}{suffix})"


class RouteTable:
    """Immutable, specificity-ordered set of routes.

    Longer route paths are tried first. Equal lengths keep registration
    order, except that an exact route always precedes a parameterized one.
    """

    __slots__ = ("_routes",)

    def __init__(self, routes: tuple[Route, ...] | list[Route]) -> None:
        self._routes = tuple(sorted(routes, key=lambda r: (-len(r.path), r.parameterized)))

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def select(self, path: str, method: str) -> Route | None:
        """Return the first route whose shape fits *path* and whose method matches."""
        method = method.upper()
        for route in self._routes:
            if route.matches(path) and route.method == method:
                return route
        return None


class Router:
    """Collects routes at startup and freezes them into a :class:`RouteTable`."""

    __slots__ = ("_table", "routes")

    def __init__(self) -> None:
        self.routes: list[Route] = []
        self._table: RouteTable | None = None

    def add_route(
        self,
        method: str,
        path: str,
        handler: Handler,
        *,
        has_path_param: bool = False,
    ) -> Route:
        if self._table is not None:
            msg = f"Cannot register {method.upper()} {path}: the route table is already frozen"
            raise RuntimeError(msg)
        route = Route(method, path, handler, has_path_param=has_path_param)
        self.routes.append(route)
        return route

    def freeze(self) -> RouteTable:
        if self._table is None:
            self._table = RouteTable(self.routes)
        return self._table


def _compile_pattern(
    path: str,
) -> tuple[re.Pattern[str], dict[str, Callable[[str], Any]]]:
    """Compile ``/api/months/{month:month}`` into a regex + converter dict."""
    converters: dict[str, Callable[[str], Any]] = {}
    parts: list[str] = []
    last_end = 0

    for m in _PARAM_RE.finditer(path):
        parts.append(re.escape(path[last_end : m.start()]))
        name = m.group(1)
        type_name = m.group(2) or "str"

        if type_name not in _PARAM_TYPES:
            msg = f"Unknown path parameter type: {type_name!r}"
            raise ValueError(msg)

        regex, converter = _PARAM_TYPES[type_name]
        parts.append(f"(?P<{name}>{regex})")
        converters[name] = converter
        last_end = m.end()

    parts.append(re.escape(path[last_end:]))
    return re.compile("^" + "".join(parts) + "$"), converters
