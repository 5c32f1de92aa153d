"""srefsync CLI: sync a style-reference gallery with object storage."""

from ._helpers import main  # noqa: F401

# Import command modules to register Click commands with the main group.
from . import _entries, _sync  # noqa: F401
