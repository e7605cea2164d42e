"""
Constants layer of the PHS model.

Two pure functions derive the quantities that stay fixed for a run
(subject constants) and for a step block (step constants). The engine
calls them lazily when its dirty flags say the inputs have changed.
"""

import logging
import math

from phsim.core.constants import (
    DUBOIS_K,
    DUBOIS_WEIGHT_EXP,
    DUBOIS_HEIGHT_EXP,
    SPECIFIC_HEAT_PER_KG,
    WATER_LOSS_DRINK_50,
    WATER_LOSS_DRINK_95,
    WATER_LOSS_NO_DRINK,
    W_MAX_UNACCLIMATIZED,
    W_MAX_ACCLIMATIZED,
    ACCLIMATIZATION_THRESHOLD,
    TAU_CORE_REQ_MIN,
    TAU_SKIN_MIN,
    TAU_SWEAT_MIN,
    STEFAN_BOLTZMANN,
    RADIATION_AREA_FRACTION,
    RADIATION_AREA_FRACTION_DEFAULT,
    SW_MAX_MET_OFFSET,
    SW_MAX_LOW,
    SW_MAX_HIGH,
    SW_MAX_ACCLIMATIZED_GAIN,
    T_CORE_EQ_SLOPE,
    T_CORE_EQ_INTERCEPT,
    CLO_TO_M2KW,
    CLOTHING_AREA_SLOPE,
    STATIC_AIR_INSULATION,
    WALK_SPEED_SLOPE,
    WALK_SPEED_MET_OFFSET,
    WALK_SPEED_MAX,
)
from phsim.core.enums import CoreTempAlgorithm
from phsim.core.errors import ConfigurationError
from phsim.core.state import SubjectConstants, StepConstants
from phsim.core.utils import clamp, is_undefined
from phsim.subject.subject import Subject
from phsim.subject.conditions import StepConditions

logger = logging.getLogger(__name__)

# Variants 1/2 follow ISO 7933; 3/4 use the mean-body-temperature core model.
VARIANT_CORE_ALGORITHM = {
    1: CoreTempAlgorithm.STANDARD,
    2: CoreTempAlgorithm.STANDARD,
    3: CoreTempAlgorithm.MODIFIED,
    4: CoreTempAlgorithm.MODIFIED,
}

# Variants whose sweat ceiling depends on metabolic rate.
MET_LINEAR_SWEAT_VARIANTS = (1, 3)


def resolve_model_variant(variant) -> int:
    """Default 0 to 1 and reject anything outside 1-4."""
    if variant == 0:
        variant = 1
    if variant not in VARIANT_CORE_ALGORITHM:
        raise ConfigurationError(f"Unknown model variant: {variant!r} (expected 1-4)")
    return int(variant)


def body_surface_area(weight: float, height: float) -> float:
    """DuBois body surface area (m2)."""
    return DUBOIS_K * (weight ** DUBOIS_WEIGHT_EXP) * (height ** DUBOIS_HEIGHT_EXP)


def compute_subject_constants(subject: Subject) -> SubjectConstants:
    """Derive run-level constants from the subject."""
    variant = resolve_model_variant(subject.model_variant)
    adu = body_surface_area(subject.weight, subject.height)
    sp_heat = SPECIFIC_HEAT_PER_KG * subject.weight / adu

    body_mass_g = subject.weight * 1000.0
    if subject.drinks_freely:
        sweat_max50 = WATER_LOSS_DRINK_50 * body_mass_g
        sweat_max95 = WATER_LOSS_DRINK_95 * body_mass_g
    else:
        sweat_max50 = WATER_LOSS_NO_DRINK * body_mass_g
        sweat_max95 = WATER_LOSS_NO_DRINK * body_mass_g

    if subject.is_acclimatized:
        w_max = W_MAX_ACCLIMATIZED
    else:
        w_max = W_MAX_UNACCLIMATIZED

    return SubjectConstants(
        model_variant=variant,
        core_algorithm=VARIANT_CORE_ALGORITHM[variant],
        adu=adu,
        sp_heat=sp_heat,
        sweat_max50=sweat_max50,
        sweat_max95=sweat_max95,
        w_max=w_max,
        const_tcreq=math.exp(-1.0 / TAU_CORE_REQ_MIN),
        const_tsk=math.exp(-1.0 / TAU_SKIN_MIN),
        const_sw=math.exp(-1.0 / TAU_SWEAT_MIN),
    )


def max_sweat_rate(met: float, adu: float, variant: int, acclimatization: float) -> float:
    """Maximum sweat rate SWmax (W/m2)."""
    if variant in MET_LINEAR_SWEAT_VARIANTS:
        sw_max = clamp((met - SW_MAX_MET_OFFSET) * adu, SW_MAX_LOW, SW_MAX_HIGH)
    else:
        sw_max = SW_MAX_HIGH
    if acclimatization >= ACCLIMATIZATION_THRESHOLD:
        sw_max *= SW_MAX_ACCLIMATIZED_GAIN
    return sw_max


def relative_air_velocity(v_air: float, met: float, v_walk_in=None, walk_dir_in=None):
    """
    Resolve walking speed and relative air velocity.

    Returns (v_walk, v_air_rel):
    - walking speed and direction given: unidirectional walking,
      |v_air - v_walk * cos(theta)|
    - walking speed only: omnidirectional walking, max(v_air, v_walk)
    - neither: walking speed estimated from the metabolic rate and the raw
      air velocity is used
    """
    if not is_undefined(v_walk_in):
        v_walk = v_walk_in
        if not is_undefined(walk_dir_in):
            v_air_rel = abs(v_air - v_walk * math.cos(math.radians(walk_dir_in)))
        else:
            v_air_rel = max(v_air, v_walk)
    else:
        v_walk = min(WALK_SPEED_SLOPE * (met - WALK_SPEED_MET_OFFSET), WALK_SPEED_MAX)
        v_air_rel = v_air
    return v_walk, v_air_rel


def compute_step_constants(
    subject: Subject,
    subject_constants: SubjectConstants,
    conditions: StepConditions,
) -> StepConstants:
    """Derive step-block constants from the current conditions."""
    f_adu_rad = RADIATION_AREA_FRACTION.get(conditions.posture_code, RADIATION_AREA_FRACTION_DEFAULT)
    met = conditions.met

    sw_max = max_sweat_rate(
        met, subject_constants.adu, subject_constants.model_variant, subject.acclimatization
    )

    icl_st = conditions.icl * CLO_TO_M2KW
    f_acl = 1.0 + CLOTHING_AREA_SLOPE * conditions.icl
    ia_st = STATIC_AIR_INSULATION
    itot_st = icl_st + ia_st / f_acl

    v_walk, v_air_rel = relative_air_velocity(
        conditions.v_air, met, conditions.v_walk, conditions.walk_dir
    )

    # Respiratory heat exchanges.
    t_air = conditions.t_air
    pw_air = conditions.pw_air
    t_resp = 28.56 + 0.115 * t_air + 0.641 * pw_air
    c_resp = 0.001516 * met * (t_resp - t_air)
    e_resp = 0.00127 * met * (59.34 + 0.53 * t_air - 11.63 * pw_air)

    if v_air_rel > 1.0:
        z = 8.7 * v_air_rel ** 0.6
    else:
        z = 3.5 + 5.2 * v_air_rel

    logger.debug(
        "Step constants: SWmax=%.1f v_air_rel=%.3f v_walk=%.3f Z=%.3f",
        sw_max, v_air_rel, v_walk, z,
    )

    return StepConstants(
        f_adu_rad=f_adu_rad,
        f_adu_rad_aux=STEFAN_BOLTZMANN * f_adu_rad,
        sw_max=sw_max,
        t_cr_eq_ss=T_CORE_EQ_SLOPE * met + T_CORE_EQ_INTERCEPT,
        icl_st=icl_st,
        f_acl=f_acl,
        ia_st=ia_st,
        itot_st=itot_st,
        v_walk=v_walk,
        v_air_rel=v_air_rel,
        t_resp=t_resp,
        c_resp=c_resp,
        e_resp=e_resp,
        z=z,
    )
