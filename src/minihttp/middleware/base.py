"""
=============================================================================
BASE MIDDLEWARE INTERFACE
=============================================================================

Defines the middleware protocol and the pipeline for chaining middleware
around the router's dispatch. Chain of Responsibility: each middleware
either answers itself or calls the next one, and the response flows back
out through the chain in reverse order.

    request ──► MW1 ──► MW2 ──► router.dispatch
                                      │
    response ◄── MW1 ◄── MW2 ◄────────┘

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterator, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# The next middleware, or the final handler. Each middleware gets one and
# must call it to continue the chain.
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

    =========================================================================
    THE MIDDLEWARE CONTRACT
    =========================================================================

        class MyMiddleware(Middleware):
            def __call__(self, request, next):
                # before the handler runs
                response = next(request)   # <-- continue the chain
                # after the handler runs
                return response

    Responses are frozen: a middleware that wants to change one builds a
    new response (dataclasses.replace) rather than mutating it.

    =========================================================================
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """
        Process the request.

        Args:
            request: The incoming HTTP request
            next: The next handler in the chain (call this to continue!)

        Returns:
            HTTP response (either from next() or short-circuited)
        """

    @property
    def name(self) -> str:
        """Get the middleware name for logging."""
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Chains middleware together around a final handler.

    Usage:
        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware())

        handler = pipeline.wrap(router.dispatch)
        response = handler(request)

    First added = outermost: it sees the request first and the response
    last.
    """

    def __init__(self):
        """Initialize an empty middleware pipeline."""
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """
        Add middleware to the pipeline.

        Returns:
            Self for method chaining
        """
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self  # Enable chaining: pipeline.add(A).add(B)

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        """Add several middleware in one call, in order."""
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Wrap a handler with all middleware in the pipeline.

        Given [MW1, MW2] and handler, the result calls:

            MW1 → MW2 → handler

        We wrap in REVERSE order so that the first-added middleware is the
        outermost wrapper.

        Args:
            handler: The final request handler

        Returns:
            Wrapped handler function that includes all middleware
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)
        return current

    def _create_wrapped_handler(
        self,
        middleware: Middleware,
        next_handler: NextHandler
    ) -> NextHandler:
        """Close over one middleware and the handler it should call next."""
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)

        return wrapped

    def __len__(self) -> int:
        """Get the number of middleware in the pipeline."""
        return len(self._middleware)

    def __iter__(self) -> Iterator[Middleware]:
        """Iterate over middleware."""
        return iter(self._middleware)
