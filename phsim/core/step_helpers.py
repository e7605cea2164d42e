"""
Step Helper Methods Mixin for SimulationEngine.

This module contains the private _step_* methods that sequence one minute of
the PHS model. Each helper reads the previous-minute shadows and the cached
constants, calls the pure functions in phsim.physiology and writes the
results back into the engine's state record.
"""

from typing import TYPE_CHECKING
import logging
import math

from phsim.core.constants import RECTAL_TEMP_LIMIT
from phsim.core.utils import exp_filter, saturated_vapour_pressure
from phsim.physiology.heat_exchange import (
    required_core_temperature,
    skin_temperature_equilibrium,
    dynamic_insulation,
    convection_coefficient,
    radiating_fraction,
    clothing_temperature,
    heat_balance,
)
from phsim.physiology.sweat import sweat_rate, water_loss
from phsim.physiology.core_temp import rectal_temperature

if TYPE_CHECKING:
    from .engine import SimulationEngine

logger = logging.getLogger(__name__)


class StepHelpersMixin:
    """
    Mixin providing step helper methods for SimulationEngine.

    Order within a minute:
    - Required core temperature and its heat storage
    - Skin temperature
    - Dynamic clothing insulation
    - Convection and clothing temperature
    - Heat balance
    - Sweat rate
    - Core and rectal temperature
    - Water loss
    """

    def _step_required_core(self: "SimulationEngine"):
        thermal = self.state.thermal
        thermal.t_cr_eq, thermal.d_stor_eq = required_core_temperature(
            thermal.t_cr_eq_prev,
            self.step_constants.t_cr_eq_ss,
            self.subject_constants.const_tcreq,
            self.subject_constants.sp_heat,
            thermal.sk_cr_rel_prev,
        )

    def _step_skin_temperature(self: "SimulationEngine"):
        cond = self.conditions
        thermal = self.state.thermal
        # Raw air velocity and last minute's rectal temperature feed the fit.
        t_sk_eq = skin_temperature_equilibrium(
            cond.t_air, cond.t_rad, cond.pw_air, cond.v_air, cond.met,
            thermal.t_re_prev, cond.icl,
        )
        thermal.t_sk = exp_filter(thermal.t_sk_prev, t_sk_eq, self.subject_constants.const_tsk)
        thermal.pw_sk = saturated_vapour_pressure(thermal.t_sk)

    def _step_insulation(self: "SimulationEngine"):
        cond = self.conditions
        sc = self.step_constants
        ins = dynamic_insulation(
            sc.v_air_rel, sc.v_walk, cond.icl, sc.itot_st, sc.ia_st, sc.f_acl, cond.im_st
        )
        clothing = self.state.clothing
        clothing.cor_cl = ins.cor_cl
        clothing.cor_ia = ins.cor_ia
        clothing.cor_tot = ins.cor_tot
        clothing.cor_e = ins.cor_e
        clothing.itot_dyn = ins.itot_dyn
        clothing.icl_dyn = ins.icl_dyn
        clothing.im_dyn = ins.im_dyn
        clothing.rt_dyn = ins.rt_dyn

    def _step_clothing_temperature(self: "SimulationEngine"):
        cond = self.conditions
        sc = self.step_constants
        thermal = self.state.thermal
        clothing = self.state.clothing

        clothing.hc_dyn = convection_coefficient(thermal.t_sk, cond.t_air, sc.z)
        clothing.f_acl_rad = radiating_fraction(cond.f_aref, cond.fr)

        t_cl, hr, iterations = clothing_temperature(
            thermal.t_sk,
            cond.t_air,
            cond.t_rad,
            clothing.hc_dyn,
            sc.f_acl,
            clothing.f_acl_rad,
            sc.f_adu_rad_aux,
            clothing.icl_dyn,
            tuning=self.config.solver,
            time=self.state.clock.time,
        )
        thermal.t_cl = t_cl
        clothing.hr = hr
        logger.debug("t=%s clothing temperature %.4f after %d iterations",
                     self.state.clock.time, t_cl, iterations)

    def _step_heat_balance(self: "SimulationEngine"):
        cond = self.conditions
        sc = self.step_constants
        thermal = self.state.thermal
        clothing = self.state.clothing
        balance = heat_balance(
            cond.met, cond.work, thermal.d_stor_eq, sc.c_resp, sc.e_resp,
            sc.f_acl, clothing.hc_dyn, clothing.hr, thermal.t_cl, cond.t_air, cond.t_rad,
        )
        clothing.conv = balance.conv
        clothing.rad = balance.rad
        self.state.sweat.e_req = balance.e_req

    def _step_sweat(self: "SimulationEngine"):
        sweat = self.state.sweat
        result = sweat_rate(
            sweat.e_req,
            self.state.thermal.pw_sk,
            self.conditions.pw_air,
            self.state.clothing.rt_dyn,
            self.step_constants.sw_max,
            sweat.sw_pre,
            self.subject_constants.const_sw,
            self.subject_constants.w_max,
        )
        sweat.e_req = result.e_req
        sweat.e_max = result.e_max
        sweat.sw_req = result.sw_req
        sweat.sw_pre = result.sw_pre
        sweat.e_pre = result.e_pre
        # Wettedness keeps its last value on minutes where it is not evaluated.
        if not math.isnan(result.w_req):
            sweat.w_req = result.w_req
        if not math.isnan(result.w_pre):
            sweat.w_pre = result.w_pre

    def _step_core_temperature(self: "SimulationEngine"):
        thermal = self.state.thermal
        sweat = self.state.sweat
        d_storage = sweat.e_req - sweat.e_pre + thermal.d_stor_eq
        result = self.core_model.solve(
            d_storage,
            self.subject_constants.sp_heat,
            thermal.t_cr_prev,
            thermal.t_sk,
            thermal.t_sk_prev,
            thermal.sk_cr_rel_prev,
            thermal.t_bm_prev,
            time=self.state.clock.time,
        )
        thermal.t_cr = result.t_cr
        thermal.sk_cr_rel = result.sk_cr_rel
        thermal.t_bm = result.t_bm

    def _step_rectal_temperature(self: "SimulationEngine"):
        thermal = self.state.thermal
        thermal.t_re = rectal_temperature(thermal.t_re_prev, thermal.t_cr)
        time = self.state.clock.time
        if self.state.limits.latch("rectal_temp", time, thermal.t_re >= RECTAL_TEMP_LIMIT):
            logger.info("t=%s rectal temperature reached %.1f C", time, RECTAL_TEMP_LIMIT)

    def _step_water_loss(self: "SimulationEngine"):
        sweat = self.state.sweat
        loss = water_loss(
            sweat.sw_pre, self.step_constants.e_resp, sweat.sw_tot, self.subject_constants.adu
        )
        sweat.sw = loss.sw
        sweat.sw_tot = loss.sw_tot
        sweat.sw_g = loss.sw_g
        sweat.sw_tot_g = loss.sw_tot_g

        time = self.state.clock.time
        limits = self.state.limits
        sc = self.subject_constants
        if limits.latch("water_loss50", time, sweat.sw_tot_g >= sc.sweat_max50):
            logger.info("t=%s water loss limit (50%%) reached: %.0f g", time, sweat.sw_tot_g)
        if limits.latch("water_loss95", time, sweat.sw_tot_g >= sc.sweat_max95):
            logger.info("t=%s water loss limit (95%%) reached: %.0f g", time, sweat.sw_tot_g)
