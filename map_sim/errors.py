from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when a robot spec, grid or config document is malformed.

    Only configuration-time code raises it; per-tick routines never do.
    """
