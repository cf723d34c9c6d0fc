"""
morpherctl - manage morpher agents that perform VM migrations
"""

from .version import VERSION as __version__

__all__ = ["__version__"]
