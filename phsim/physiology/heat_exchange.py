"""
Dry heat exchange through clothing.

Covers the required core temperature lag, skin temperature prediction,
dynamic clothing insulation, the convective coefficient, the clothing
surface temperature solve and the resulting heat balance. All functions
are pure; the engine writes their outputs into its state record.
"""

from dataclasses import dataclass
import math

from phsim.core.constants import (
    SKIN_MODEL_NUDE_CLO,
    SKIN_MODEL_CLOTHED_CLO,
    COR_AIR_SPEED_CAP,
    COR_WALK_SPEED_CAP,
    IM_DYN_MAX,
    LEWIS_RELATION,
    CLOTHING_EMISSIVITY,
    SolverTuning,
)
from phsim.core.errors import ConvergenceError
from phsim.core.utils import exp_filter


KELVIN_OFFSET = 273.0


@dataclass(frozen=True)
class DynamicInsulation:
    cor_cl: float     # Intrinsic insulation correction
    cor_ia: float     # Boundary layer insulation correction
    cor_tot: float    # Total insulation correction
    cor_e: float      # Permeability correction
    itot_dyn: float   # Dynamic total insulation (m2K/W)
    icl_dyn: float    # Dynamic intrinsic insulation (m2K/W)
    im_dyn: float     # Dynamic permeability index
    rt_dyn: float     # Dynamic evaporative resistance (m2kPa/W)


@dataclass(frozen=True)
class HeatBalance:
    conv: float       # Convective loss at the clothing surface (W/m2)
    rad: float        # Radiative loss at the clothing surface (W/m2)
    e_req: float      # Required evaporative loss (W/m2)


def required_core_temperature(t_cr_eq_prev, t_cr_eq_ss, decay, sp_heat, sk_cr_rel_prev):
    """
    Lag the steady-state required core temperature and return
    (t_cr_eq, d_stor_eq), the heat storage that goes with the increase.
    """
    t_cr_eq = exp_filter(t_cr_eq_prev, t_cr_eq_ss, decay)
    d_stor_eq = sp_heat * (t_cr_eq - t_cr_eq_prev) * (1.0 - sk_cr_rel_prev)
    return t_cr_eq, d_stor_eq


def skin_temperature_equilibrium(t_air, t_rad, pw_air, v_air, met, t_re, icl) -> float:
    """Equilibrium skin temperature, blended between nude and clothed fits."""
    t_sk_clothed = (
        12.165 + 0.02017 * t_air + 0.04361 * t_rad + 0.19354 * pw_air
        - 0.25315 * v_air + 0.005346 * met + 0.51274 * t_re
    )
    t_sk_nude = (
        7.191 + 0.064 * t_air + 0.061 * t_rad + 0.198 * pw_air
        - 0.348 * v_air + 0.616 * t_re
    )
    if icl <= SKIN_MODEL_NUDE_CLO:
        return t_sk_nude
    if icl >= SKIN_MODEL_CLOTHED_CLO:
        return t_sk_clothed
    weight = (icl - SKIN_MODEL_NUDE_CLO) / (SKIN_MODEL_CLOTHED_CLO - SKIN_MODEL_NUDE_CLO)
    return t_sk_nude + weight * (t_sk_clothed - t_sk_nude)


def dynamic_insulation(v_air_rel, v_walk, icl, itot_st, ia_st, f_acl, im_st) -> DynamicInsulation:
    """Correct static clothing insulation and permeability for air and body movement."""
    v_aux = min(v_air_rel, COR_AIR_SPEED_CAP)
    w_aux = min(v_walk, COR_WALK_SPEED_CAP)

    cor_cl = 1.044 * math.exp((0.066 * v_aux - 0.398) * v_aux + (0.094 * w_aux - 0.378) * w_aux)
    cor_cl = min(cor_cl, 1.0)
    # Boundary layer correction uses the uncapped relative air velocity.
    cor_ia = math.exp((0.047 * v_air_rel - 0.472) * v_air_rel + (0.117 * w_aux - 0.342) * w_aux)
    cor_ia = min(cor_ia, 1.0)

    cor_tot = cor_cl
    if icl <= SKIN_MODEL_CLOTHED_CLO:
        cor_tot = ((0.6 - icl) * cor_ia + icl * cor_cl) / 0.6

    itot_dyn = itot_st * cor_tot
    ia_dyn = cor_ia * ia_st
    icl_dyn = itot_dyn - ia_dyn / f_acl

    cor_e = (2.6 * cor_tot - 6.5) * cor_tot + 4.9
    im_dyn = min(im_st * cor_e, IM_DYN_MAX)
    rt_dyn = itot_dyn / im_dyn / LEWIS_RELATION

    return DynamicInsulation(
        cor_cl=cor_cl,
        cor_ia=cor_ia,
        cor_tot=cor_tot,
        cor_e=cor_e,
        itot_dyn=itot_dyn,
        icl_dyn=icl_dyn,
        im_dyn=im_dyn,
        rt_dyn=rt_dyn,
    )


def convection_coefficient(t_sk, t_air, z) -> float:
    """Dynamic convective coefficient: natural convection with a velocity floor."""
    hc_dyn = 2.38 * abs(t_sk - t_air) ** 0.25
    return max(hc_dyn, z)


def radiating_fraction(f_aref, fr) -> float:
    """Effective clothing emissivity with partial reflective coverage."""
    return (1.0 - f_aref) * CLOTHING_EMISSIVITY + f_aref * fr


def _pow4_kelvin(temp_c: float) -> float:
    t_k = temp_c + KELVIN_OFFSET
    t_k *= t_k
    return t_k * t_k


def clothing_temperature(
    t_sk,
    t_air,
    t_rad,
    hc_dyn,
    f_acl,
    f_acl_rad,
    f_adu_rad_aux,
    icl_dyn,
    tuning: SolverTuning = SolverTuning(),
    time=None,
):
    """
    Solve the clothing surface heat balance for Tcl.

    The radiative coefficient depends on Tcl itself, so the estimate is
    refined by averaging successive iterates. Returns (t_cl, hr, iterations).
    Raises ConvergenceError when the iteration bound is exhausted.
    """
    t_rad_k4 = _pow4_kelvin(t_rad)
    t_cl = t_rad + tuning.clothing_start_offset_c
    for iteration in range(1, tuning.clothing_max_iter + 1):
        hr = f_acl_rad * f_adu_rad_aux * (_pow4_kelvin(t_cl) - t_rad_k4) / (t_cl - t_rad)
        t_cl_new = (
            (f_acl * (hc_dyn * t_air + hr * t_rad) + t_sk / icl_dyn)
            / (f_acl * (hc_dyn + hr) + 1.0 / icl_dyn)
        )
        if abs(t_cl - t_cl_new) <= tuning.clothing_tol_c:
            return t_cl, hr, iteration
        t_cl = (t_cl + t_cl_new) / 2.0
    raise ConvergenceError("clothing temperature", tuning.clothing_max_iter, t_cl, time)


def heat_balance(
    met, work, d_stor_eq, c_resp, e_resp, f_acl, hc_dyn, hr, t_cl, t_air, t_rad
) -> HeatBalance:
    """Dry losses at the clothing surface and the evaporation they leave required."""
    conv = f_acl * hc_dyn * (t_cl - t_air)
    rad = f_acl * hr * (t_cl - t_rad)
    e_req = met - d_stor_eq - work - c_resp - e_resp - conv - rad
    return HeatBalance(conv=conv, rad=rad, e_req=e_req)
