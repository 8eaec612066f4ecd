import logging

from actionref import __version__

__all__ = [
    "log",
    "__version__",
]

version = __version__
log = logging.getLogger("actionref")
