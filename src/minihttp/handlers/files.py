"""
=============================================================================
FILE HANDLER
=============================================================================

Serves and stores whole files under one configured directory.

    GET  /files/{name}   → 200 application/octet-stream with the file bytes
                           404 if there is no such (readable) file
    POST /files/{name}   → writes the request body to {name}, 201 Created
                           500 if there is no body or the write fails
    other methods        → 500 (there is no 405 here)

    No --directory given → 404 for every method. The route exists, but
    there is nothing behind it.

=============================================================================
PATH TRAVERSAL
=============================================================================

The router only ever hands us a single path segment, so "/" cannot appear
in a name. ".." still can:

    GET /files/..   → root_dir/..  → the PARENT of the served directory!

Every name is resolved and checked to still be inside root_dir before we
touch the filesystem. A name that escapes is treated exactly like a file
that doesn't exist (GET) or can't be written (POST).

=============================================================================
CONCURRENCY
=============================================================================

Two clients POSTing the same name at the same time race at the filesystem
level: last write wins. Nothing here takes a lock; the directory path is
the only state shared between connections, and it never changes.

=============================================================================
"""

from pathlib import Path
from typing import Optional
import logging

from ..http.request import HTTPRequest, Method
from ..http.response import (
    HTTPResponse, ResponseBuilder,
    created, internal_error, not_found,
)


logger = logging.getLogger(__name__)


class FileHandler:
    """
    Handler for the /files/{name} route.

    Usage:
        files = FileHandler("/tmp/data")
        router.add_route("/files/:name", files.handle)
    """

    def __init__(self, root_dir: Optional[str]):
        """
        Args:
            root_dir: Directory to read from and write to. None disables
                      the route (every request gets 404).
        """
        # Resolve to absolute path (important for the containment check)
        self.root_dir: Optional[Path] = Path(root_dir).resolve() if root_dir else None

    @property
    def enabled(self) -> bool:
        return self.root_dir is not None

    def handle(self, request: HTTPRequest, name: str) -> HTTPResponse:
        """
        Dispatch on method.

        Args:
            request: The HTTP request.
            name: File name captured from the path.

        Returns:
            HTTP response with file content, status, or error.
        """
        if not self.enabled:
            return not_found(request.version)

        if request.method is Method.GET:
            return self._serve_file(request, name)
        if request.method is Method.POST:
            return self._store_file(request, name)

        logger.debug(f"{request.method.value} not supported on /files/{name}")
        return internal_error(request.version)

    def _resolve(self, name: str) -> Optional[Path]:
        """
        Map a file name to a path inside root_dir.

        Returns:
            The resolved path, or None if it would escape root_dir or
            can't name a file at all (an embedded NUL byte).
        """
        try:
            # resolve() follows symlinks and normalizes .. components
            full_path = (self.root_dir / name).resolve()
        except ValueError as e:
            logger.warning(f"Unusable file name {name!r}: {e}")
            return None

        try:
            full_path.relative_to(self.root_dir)
        except ValueError:
            logger.warning(f"Path traversal attempt: {name!r}")
            return None
        return full_path

    def _serve_file(self, request: HTTPRequest, name: str) -> HTTPResponse:
        path = self._resolve(name)
        if path is None:
            return not_found(request.version)

        try:
            # Whole file in memory: fine for the small files this serves
            content = path.read_bytes()
        except OSError as e:
            logger.debug(f"Cannot read {path}: {e}")
            return not_found(request.version)

        return (ResponseBuilder(request.version)
            .octet_stream(content)
            .compress(request.accepts_gzip)
            .build())

    def _store_file(self, request: HTTPRequest, name: str) -> HTTPResponse:
        if request.body is None:
            logger.debug(f"POST /files/{name} without a body")
            return internal_error(request.version)

        path = self._resolve(name)
        if path is None:
            return internal_error(request.version)

        try:
            # Create or truncate, then write the body verbatim
            path.write_bytes(request.body)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            return internal_error(request.version)

        logger.info(f"Stored {len(request.body)} bytes in {path}")
        return created(request.version)
