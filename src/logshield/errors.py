"""Error types raised by the logshield engine."""


class LogShieldError(Exception):
    """Base class for logshield errors."""


class InputTooLarge(LogShieldError, ValueError):
    """Input exceeds the size ceiling; raised before any rule runs."""


class CatalogError(LogShieldError, ValueError):
    """A rule definition is malformed. Raised while the catalog is built."""
