"""
Exception hierarchy for PHSim.

Every error raised by the engine derives from PHSError so drivers can
abort a run with a single except clause.
"""


class PHSError(Exception):
    """Base class for all simulation errors."""


class ConfigurationError(PHSError):
    """Invalid model variant or unknown parameter name."""


class ConvergenceError(PHSError):
    """A bounded fixed-point solve did not converge."""

    def __init__(self, solver: str, iterations: int, last_value: float, time=None):
        self.solver = solver
        self.iterations = iterations
        self.last_value = last_value
        self.time = time
        msg = f"{solver} did not converge within {iterations} iterations (last estimate {last_value:.4f})"
        if time is not None:
            msg += f" at t={time} min"
        super().__init__(msg)


class StaleSubjectParameters(PHSError):
    """Subject parameters changed after initialize(); a run must keep them fixed."""


class SimulationNotInitialized(PHSError):
    """Stepping was requested before initialize()."""


class ParameterRangeError(PHSError, ValueError):
    """Parameter value rejected by the range policy."""
