"""
=============================================================================
REQUEST HANDLERS
=============================================================================

The fixed set of behaviours the router dispatches to:

1. index / user_agent / echo  (basic.py)
   - Tiny stateless responders, one function each

2. FileHandler  (files.py)
   - GET reads a file from the configured directory
   - POST writes the request body to it

=============================================================================
USAGE EXAMPLES
=============================================================================

    from minihttp.handlers import FileHandler, echo

    router.add_route("/echo/:text", echo)
    router.add_route("/files/:name", FileHandler("/tmp/data").handle)

=============================================================================
"""

from .basic import echo, index, user_agent
from .files import FileHandler

__all__ = [
    "index",
    "user_agent",
    "echo",
    "FileHandler",
]
