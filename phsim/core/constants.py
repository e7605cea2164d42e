"""
Physiological and Numerical Constants for PHSim.

This module centralizes the ISO 7933 coefficients used throughout the
simulation.

NOTE: Only add constants here that are ACTIVELY IMPORTED elsewhere.
"""

from dataclasses import dataclass

# Body constants (used in body_constants.py).

# DuBois body surface area: A = k * W^a * H^b (m2, kg, m)
DUBOIS_K = 0.202
DUBOIS_WEIGHT_EXP = 0.425
DUBOIS_HEIGHT_EXP = 0.725

# Body specific heat per unit area (W.min/K/m2 per kg)
SPECIFIC_HEAT_PER_KG = 57.83

# Water loss limits as fractions of body mass
WATER_LOSS_DRINK_50 = 0.075
WATER_LOSS_DRINK_95 = 0.05
WATER_LOSS_NO_DRINK = 0.03

# Maximum skin wettedness
W_MAX_UNACCLIMATIZED = 0.85
W_MAX_ACCLIMATIZED = 1.0
ACCLIMATIZATION_THRESHOLD = 50.0

# Exponential averaging time constants (minutes)
TAU_CORE_REQ_MIN = 10.0
TAU_SKIN_MIN = 3.0
TAU_SWEAT_MIN = 10.0

# Step constants.

STEFAN_BOLTZMANN = 5.67e-08

# Effective radiating area fraction by posture
RADIATION_AREA_FRACTION = {
    1: 0.7,   # sitting
    2: 0.77,  # standing
    3: 0.67,  # crouching
}
RADIATION_AREA_FRACTION_DEFAULT = 0.7

# Maximum sweat rate (W/m2)
SW_MAX_MET_OFFSET = 32.0
SW_MAX_LOW = 250.0
SW_MAX_HIGH = 400.0
SW_MAX_ACCLIMATIZED_GAIN = 1.25

# Equilibrium core temperature vs metabolic rate
T_CORE_EQ_SLOPE = 0.0036
T_CORE_EQ_INTERCEPT = 36.6

# Clothing
CLO_TO_M2KW = 0.155
CLOTHING_AREA_SLOPE = 0.3
STATIC_AIR_INSULATION = 0.111

# Walking speed estimated from metabolic rate (m/s)
WALK_SPEED_SLOPE = 0.0052
WALK_SPEED_MET_OFFSET = 58.0
WALK_SPEED_MAX = 0.7

# Skin temperature model interpolation range (clo)
SKIN_MODEL_NUDE_CLO = 0.2
SKIN_MODEL_CLOTHED_CLO = 0.6

# Dynamic insulation velocity caps (m/s)
COR_AIR_SPEED_CAP = 3.0
COR_WALK_SPEED_CAP = 1.5
IM_DYN_MAX = 0.9
LEWIS_RELATION = 16.7

CLOTHING_EMISSIVITY = 0.97

# Sweat.
W_REQ_MAX = 1.7

# Water loss conversion W/m2 per minute -> g: 2.67 * Adu / 1.8 / 60
WATER_LOSS_G_FACTOR = 2.67 / 1.8 / 60.0

# Rectal temperature limit (deg C)
RECTAL_TEMP_LIMIT = 38.0

# Skin/core mass fraction model
SK_CR_REL_MAX = 0.3
SK_CR_REL_MIN = 0.1
SK_CR_REL_PIVOT_C = 36.8
SK_CR_REL_UPPER_C = 39.0
SK_CR_REL_SLOPE_STANDARD = 0.09
SK_CR_REL_SLOPE_MODIFIED = 0.091


@dataclass(frozen=True)
class SolverTuning:
    """Iteration bounds and tolerances of the fixed-point solves."""
    clothing_max_iter: int = 20
    clothing_tol_c: float = 0.001
    clothing_start_offset_c: float = 0.1
    core_max_iter: int = 25
    core_tol_c: float = 0.001


@dataclass(frozen=True)
class InitialConditions:
    """Thermal baseline at the start of a run."""
    t_core_c: float = 36.8
    t_rectal_c: float = 36.8
    t_skin_c: float = 34.1
    t_mean_body_c: float = 36.39488
    t_core_req_c: float = 36.8
    sk_cr_rel: float = 0.3
