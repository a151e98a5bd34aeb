"""
routeledger command-line interface.
"""

from .. import __version__

__all__ = ["__version__"]
