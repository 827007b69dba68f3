class PSOError(Exception):
    """Base class for errors raised by the swarm optimizer."""


class ConfigurationError(PSOError, ValueError):
    """Invalid optimizer parameters, detected before any run starts."""


class ResourceError(PSOError, OSError):
    """The iteration log could not be opened for writing."""


class RunCancelled(PSOError):
    """A run was stopped at an iteration boundary by its cancel event."""

    def __init__(self, iteration):
        super().__init__(f"Run cancelled before iteration {iteration}")
        self.iteration = iteration
