# herdsim/utils/errors.py
class HerdSimError(RuntimeError):
    """Base class for every error raised by the simulation core."""


class InvalidInputError(HerdSimError):
    """
    Empty or malformed dataset where time bounds are required
    (normalizing nothing into a longer horizon, loading an empty dataset).

    The clock stays STOPPED when this is raised.
    """


class ConfigurationError(HerdSimError):
    """
    Invalid configuration values (non-positive speed / tick period,
    unsupported horizon). Raised before the clock starts.
    """
