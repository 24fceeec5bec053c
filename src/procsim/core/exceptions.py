"""Exception types raised by procsim."""


class ProcsimError(Exception):
    """Base class for all procsim errors."""


class ValidationError(ProcsimError, ValueError):
    """Raised when a process, scenario or run request is invalid.

    Examples: an empty activity list (no entry point), a duration range
    with min > max, a flow probability outside (0, 1], or a non-positive
    instance count.
    """


class ConfigError(ProcsimError, ValueError):
    """Raised when an experiment configuration file cannot be used."""
