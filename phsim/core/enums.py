from enum import Enum


class Posture(Enum):
    """Body posture (ISO 7933 coding)."""
    SITTING = 1
    STANDING = 2
    CROUCHING = 3


class CoreTempAlgorithm(Enum):
    """Core temperature prediction strategy."""
    STANDARD = "standard"  # variants 1/2
    MODIFIED = "modified"  # variants 3/4


class ConvergencePolicy(Enum):
    """What to do when a core temperature solve runs out of iterations."""
    RAISE = "raise"
    WARN = "warn"


class RangePolicy(Enum):
    """Handling of parameter values outside their documented range."""
    PASS_THROUGH = "pass_through"
    CLAMP = "clamp"
    REJECT = "reject"


class ConstantsStatus(Enum):
    CLEAN = "clean"
    STALE = "stale"
