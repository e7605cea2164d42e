"""
Sweat production, skin wettedness and water loss.
"""

from dataclasses import dataclass
import math

from phsim.core.constants import W_REQ_MAX, WATER_LOSS_G_FACTOR
from phsim.core.utils import exp_filter


@dataclass(frozen=True)
class SweatRate:
    e_req: float      # Required evaporation, floored at 0 (W/m2)
    e_max: float      # Maximum evaporation, floored at 0 when evaporation is impossible (W/m2)
    w_req: float      # Required wettedness (NaN when not evaluated this minute)
    sw_req: float     # Required sweat rate (W/m2)
    sw_pre: float     # Predicted sweat rate (W/m2)
    w_pre: float      # Predicted wettedness (NaN when not evaluated this minute)
    e_pre: float      # Predicted evaporation (W/m2)


@dataclass(frozen=True)
class WaterLoss:
    sw: float         # Water loss rate this minute (W/m2)
    sw_tot: float     # Cumulative water loss (W/m2 . min)
    sw_g: float       # Water loss this minute (g)
    sw_tot_g: float   # Cumulative water loss (g)


def evaporation_efficiency(w_req: float) -> float:
    """Evaporative efficiency of sweating at the required wettedness."""
    if w_req > 1.0:
        return (2.0 - w_req) ** 2 / 2.0
    return 1.0 - w_req ** 2 / 2.0


def required_sweat_rate(e_req, e_max, sw_max):
    """
    Return (e_req, e_max, w_req, sw_req) after the ISO 7933 branch rules.
    """
    w_req = math.nan
    if e_req <= 0.0:
        return 0.0, e_max, w_req, 0.0
    if e_max <= 0.0:
        return e_req, 0.0, w_req, sw_max

    w_req = e_req / e_max
    if w_req >= W_REQ_MAX:
        return e_req, e_max, W_REQ_MAX, sw_max

    sw_req = min(e_req / evaporation_efficiency(w_req), sw_max)
    return e_req, e_max, w_req, sw_req


def predicted_wettedness(e_max: float, sw_pre: float, w_max: float) -> float:
    """Wettedness reached by the predicted sweat rate, clipped to w_max."""
    k = e_max / sw_pre
    w_pre = 1.0
    if k >= 0.5:
        w_pre = -k + math.sqrt(k * k + 2.0)
    return min(w_pre, w_max)


def sweat_rate(e_req, pw_sk, pw_air, rt_dyn, sw_max, sw_pre_prev, decay, w_max) -> SweatRate:
    """Required and predicted sweat rate for this minute."""
    e_max = (pw_sk - pw_air) / rt_dyn
    e_req, e_max, w_req, sw_req = required_sweat_rate(e_req, e_max, sw_max)

    sw_pre = exp_filter(sw_pre_prev, sw_req, decay)
    if sw_pre <= 0.0:
        sw_pre = 0.0
        w_pre = math.nan
        e_pre = 0.0
    else:
        w_pre = predicted_wettedness(e_max, sw_pre, w_max)
        e_pre = w_pre * e_max

    return SweatRate(
        e_req=e_req,
        e_max=e_max,
        w_req=w_req,
        sw_req=sw_req,
        sw_pre=sw_pre,
        w_pre=w_pre,
        e_pre=e_pre,
    )


def water_loss(sw_pre, e_resp, sw_tot_prev, adu) -> WaterLoss:
    """Accumulate sweat plus respiratory water loss and convert to grams."""
    sw = sw_pre + e_resp
    sw_tot = sw_tot_prev + sw
    k_to_g = WATER_LOSS_G_FACTOR * adu
    return WaterLoss(sw=sw, sw_tot=sw_tot, sw_g=sw * k_to_g, sw_tot_g=sw_tot * k_to_g)
