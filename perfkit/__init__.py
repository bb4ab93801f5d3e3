"""
perfkit Python package.

Client-side performance utilities: throttling, memoization caches,
batched updates, virtual list ranges, render monitoring and local data
recovery helpers. See README.md for usage.
"""

from .__version__ import __version__

__all__ = ["__version__"]
