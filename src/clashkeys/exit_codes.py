"""Numeric process exit codes used by the ``clashkeys`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~clashkeys.exceptions.ClashKeysError` subclass.
Shell wrappers can inspect the exit code to tell a rejected login from a
key conflict without parsing stderr.

Example::

    $ clashkeys keys create
    $ echo $?
    8   # EXIT_CONFLICT -- a valid key already exists for this IP
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Login was rejected or the developer session is missing."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_PROVIDER_ERROR = 5
"""The API or developer portal answered with an error status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, malformed body)."""

EXIT_CONFLICT = 8
"""A valid key already exists for the requested IP addresses."""

EXIT_RATE_LIMITED = 9
"""The API throttled the request (HTTP 429)."""
