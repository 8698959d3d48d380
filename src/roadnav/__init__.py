"""Turn-by-turn navigation core: route matching, off-route detection and voice guidance."""

__version__ = "0.1.0"
