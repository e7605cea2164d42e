"""
Named parameter registry.

Maps the public parameter names used by drivers and configuration files
(accl, Tair, Met, ...) onto Subject / StepConditions attributes, with their
documented defaults and ranges. Subject-scope writes invalidate the subject
constants, step-scope writes invalidate the step constants.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional
import logging

from .enums import RangePolicy
from .errors import ConfigurationError, ParameterRangeError
from .staleness import SUBJECT, STEP
from .utils import clamp, is_undefined

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    attr: str                 # Attribute on the bound object
    scope: str                # SUBJECT or STEP
    default: Optional[float]
    min: float
    max: float
    unit: str = ""
    description: str = ""
    nullable: bool = False

    def in_range(self, value) -> bool:
        return self.min <= value <= self.max


SUBJECT_PARAMETERS = (
    ParameterSpec("accl", "acclimatization", SUBJECT, 100, 0, 100, "%", "Acclimatised subject, 0 or 100"),
    ParameterSpec("drink", "drink", SUBJECT, 1, 0, 1, "", "May drink freely, 0 or 1"),
    ParameterSpec("height", "height", SUBJECT, 1.8, 1.5, 2.4, "m", "Body height"),
    ParameterSpec("mass", "weight", SUBJECT, 75, 0, 120, "kg", "Body mass"),
    ParameterSpec("sim_mod", "model_variant", SUBJECT, 0, 0, 4, "", "Simulation model variant"),
)

STEP_PARAMETERS = (
    ParameterSpec("post", "posture", STEP, 2, 1, 3, "", "1 = sitting, 2 = standing, 3 = crouching"),
    ParameterSpec("Tair", "t_air", STEP, 40, 15, 50, "C", "Air temperature"),
    ParameterSpec("Pw_air", "pw_air", STEP, 2.5, 0, 4.5, "kPa", "Partial water vapour pressure"),
    ParameterSpec("Trad", "t_rad", STEP, 40, 15, 110, "C", "Radiant temperature"),
    ParameterSpec("v_air", "v_air", STEP, 0.3, 0, 3.0, "m/s", "Air velocity"),
    ParameterSpec("Met", "met", STEP, 150, 100, 400, "W/m2", "Metabolic energy production"),
    ParameterSpec("Icl", "icl", STEP, 0.5, 0.1, 1.2, "clo", "Static clothing insulation"),
    ParameterSpec("im_st", "im_st", STEP, 0.38, 0, 1.0, "", "Static moisture permeability index"),
    ParameterSpec("fAref", "f_aref", STEP, 0.54, 0, 1.0, "", "Fraction covered by reflective clothing"),
    ParameterSpec("Fr", "fr", STEP, 0.97, 0, 1.0, "", "Emissivity of reflective clothing"),
    ParameterSpec("walk_dir", "walk_dir", STEP, None, 0, 360, "degree",
                  "Angle between wind and walking direction", nullable=True),
    ParameterSpec("v_walk", "v_walk", STEP, None, 0, 1.2, "m/s", "Walking speed", nullable=True),
    ParameterSpec("work", "work", STEP, 0, 0, 200, "W/m2", "Mechanical power"),
    ParameterSpec("timestep", "step_end", STEP, 30, 1, 480, "min", "Time when the next step ends"),
)

PARAMETERS: Dict[str, ParameterSpec] = {
    spec.name: spec for spec in SUBJECT_PARAMETERS + STEP_PARAMETERS
}


def get_spec(name: str) -> ParameterSpec:
    try:
        return PARAMETERS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown parameter: {name!r}") from None


def defaults(scope: Optional[str] = None) -> Dict[str, Optional[float]]:
    """Default values keyed by public name, optionally for one scope only."""
    return {
        name: spec.default
        for name, spec in PARAMETERS.items()
        if scope is None or spec.scope == scope
    }


def apply_range_policy(spec: ParameterSpec, value, policy: RangePolicy):
    """
    Check value against the documented range and return what to store.

    Undefined values (None/NaN) are stored as None for nullable parameters
    and rejected otherwise, whatever the policy.
    Enum members (e.g. Posture) are stored as their code.
    """
    if is_undefined(value):
        if spec.nullable:
            return None
        raise ParameterRangeError(f"{spec.name} may not be undefined")
    if isinstance(value, Enum):
        value = value.value

    if spec.in_range(value) or policy is RangePolicy.PASS_THROUGH:
        return value
    if policy is RangePolicy.REJECT:
        raise ParameterRangeError(
            f"{spec.name}={value} outside [{spec.min}, {spec.max}] {spec.unit}".rstrip()
        )
    clamped = clamp(value, spec.min, spec.max)
    logger.warning("%s=%s outside [%s, %s]; clamped to %s",
                   spec.name, value, spec.min, spec.max, clamped)
    return clamped
