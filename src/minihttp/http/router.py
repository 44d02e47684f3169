"""
=============================================================================
URL ROUTER / DISPATCHER
=============================================================================

Maps a parsed request path to one of a small, fixed set of handlers.

=============================================================================
HOW MATCHING WORKS
=============================================================================

The path is split on "/" and compared segment by segment against an
ordered list of patterns. First match wins.

    Path: "/echo/hello"
    Segments: ["", "echo", "hello"]

    ┌──────────────────────┬────────────────────────┬──────────────────┐
    │ Pattern              │ Segments               │ Result           │
    ├──────────────────────┼────────────────────────┼──────────────────┤
    │ /                    │ ["", ""]               │ length differs   │
    │ /user-agent          │ ["", "user-agent"]     │ length differs   │
    │ /echo/:text          │ ["", "echo", ":text"]  │ MATCH text=hello │
    │ /files/:name         │ ["", "files", ":name"] │ (not reached)    │
    └──────────────────────┴────────────────────────┴──────────────────┘

    A literal segment must be equal.
    A ":name" segment captures exactly one segment (possibly empty).
    Different segment counts never match: "/echo/a/b" is a 404.

There is no regex, no trie and no wildcard. With four routes, a flat list
scanned in order is the simplest thing that works.

=============================================================================
DEFAULT ROUTES
=============================================================================

    /                → index          200, no body
    /user-agent      → user_agent     200, echoes the User-Agent header
    /echo/:text      → echo           200, body is the segment verbatim
    /files/:name     → FileHandler    GET reads, POST writes
    anything else    → 404

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple
import logging

from .request import HTTPRequest
from .response import HTTPResponse, not_found
from ..config import ServerConfig


logger = logging.getLogger(__name__)


# A handler takes the request plus any captured ":name" segments as kwargs.
Handler = Callable[..., HTTPResponse]


@dataclass
class Route:
    """
    A single registered route.

    Attributes:
        path: The pattern as registered ("/echo/:text")
        handler: Called as handler(request, **params)
        name: Optional label, shown in logs
    """

    path: str
    handler: Handler
    name: Optional[str] = None
    _segments: Tuple[str, ...] = field(default=(), repr=False)

    def __post_init__(self):
        self._segments = tuple(self.path.split("/"))

    def match(self, segments: List[str]) -> Optional[Dict[str, str]]:
        """
        Compare request segments against this route's pattern.

        Returns:
            Captured parameters (possibly empty) on a match, else None.
        """
        if len(segments) != len(self._segments):
            return None

        params: Dict[str, str] = {}
        for pattern, actual in zip(self._segments, segments):
            if pattern.startswith(":") and len(pattern) > 1:
                params[pattern[1:]] = actual
            elif pattern != actual:
                return None

        return params


@dataclass
class RouteMatch:
    """Result of a successful route match."""

    route: Route                     # The Route that matched
    params: Dict[str, str]           # Captured ":name" segments


class Router:
    """
    Flat, ordered path router.

    Usage:
        router = Router()

        @router.route("/echo/:text")
        def echo(request, text):
            return ResponseBuilder(request.version).text(text).build()

        response = router.dispatch(request)
    """

    def __init__(self):
        self._routes: List[Route] = []

    def add_route(self, path: str, handler: Handler, name: Optional[str] = None) -> Route:
        """
        Register a route. Routes are matched in registration order.

        Args:
            path: Pattern such as "/files/:name"
            handler: Callable invoked as handler(request, **params)
            name: Optional label

        Returns:
            The registered Route object
        """
        route = Route(path=path, handler=handler, name=name or getattr(handler, "__name__", None))
        self._routes.append(route)
        return route

    def route(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Decorator form of add_route()."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, name)
            return handler  # Return handler unchanged (allows stacking decorators)
        return decorator

    def match(self, path: str) -> Optional[RouteMatch]:
        """
        Find the first route matching a raw request path.

        Args:
            path: Request path, e.g. "/echo/abc"

        Returns:
            RouteMatch if found, None otherwise
        """
        segments = path.split("/")
        for route in self._routes:
            params = route.match(segments)
            if params is not None:
                return RouteMatch(route=route, params=params)
        return None

    def dispatch(self, request: HTTPRequest) -> HTTPResponse:
        """
        Route a request to its handler.

        Args:
            request: The parsed HTTP request

        Returns:
            The handler's response, or 404 if nothing matched
        """
        match = self.match(request.path)
        if match is None:
            logger.debug(f"No route matches {request.path}")
            return not_found(request.version)

        return match.route.handler(request, **match.params)

    def routes(self) -> List[Route]:
        """All registered routes, in match order."""
        return list(self._routes)


def build_router(config: ServerConfig) -> Router:
    """
    Create the router with the server's fixed set of routes.

    The files route is always registered. When no directory is
    configured its handler answers 404 for every method.

    Args:
        config: Server configuration (only `directory` is used).

    Returns:
        A ready-to-use Router.
    """
    # Imported here: handlers depend on this package's response helpers
    from ..handlers import FileHandler, echo, index, user_agent

    router = Router()
    router.add_route("/", index)
    router.add_route("/user-agent", user_agent)
    router.add_route("/echo/:text", echo)
    router.add_route("/files/:name", FileHandler(config.directory).handle, name="files")
    return router


def dispatch(request: HTTPRequest, config: ServerConfig) -> HTTPResponse:
    """
    Dispatch a single request against the default routes for `config`.

    Convenience for one-off use and tests; HTTPServer builds its router
    once and reuses it for every connection.
    """
    return build_router(config).dispatch(request)
