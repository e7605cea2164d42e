from typing import Dict, List, Mapping, Optional
import logging
import math

from .state import (
    SimulationState,
    SimulationResult,
    SimulationConfig,
    PhysiologicalState,
    SubjectConstants,
    StepConstants,
)
from .step_helpers import StepHelpersMixin
from .staleness import ConstantsTracker, SUBJECT
from .parameters import get_spec, apply_range_policy
from .enums import CoreTempAlgorithm
from .errors import SimulationNotInitialized, StaleSubjectParameters
from phsim.subject.subject import Subject
from phsim.subject.conditions import StepConditions
from phsim.physiology.body_constants import compute_subject_constants, compute_step_constants
from phsim.physiology.core_temp import CORE_TEMP_MODELS, CoreTempModel

logger = logging.getLogger(__name__)

NAN = math.nan


class SimulationEngine(StepHelpersMixin):
    """
    Minute-by-minute PHS simulation.

    Lifecycle: reset() -> initialize() -> advance_one_minute()* with optional
    mark_step_start() between step blocks. Step-scope parameters may change
    between minutes; subject-scope parameters are fixed once initialized.

    State management:
    - `self.state` holds all mutable physiological state.
    - Subject and step constants are cached and recomputed lazily through
      `self.tracker`.
    """
    def __init__(self, subject: Optional[Subject] = None,
                 conditions: Optional[StepConditions] = None,
                 config: Optional[SimulationConfig] = None):
        self.subject = subject if subject is not None else Subject()
        self.conditions = conditions if conditions is not None else StepConditions()
        self.config = config if config is not None else SimulationConfig()

        self.tracker = ConstantsTracker()
        self.state = PhysiologicalState()
        self.subject_constants: Optional[SubjectConstants] = None
        self.step_constants: Optional[StepConstants] = None
        self.core_model: Optional[CoreTempModel] = None
        self.initialized = False

    # Lifecycle

    def reset(self):
        """Drop all state back to undefined; initialize() is required before stepping."""
        self.state = PhysiologicalState()
        self.subject_constants = None
        self.step_constants = None
        self.core_model = None
        self.initialized = False
        self.tracker.mark_all_stale()

    def initialize(self):
        """Set the ISO 7933 initial conditions and compute all constants."""
        self.recompute_subject_constants()
        self.core_model = self._select_core_model(self.subject_constants.core_algorithm)

        init = self.config.initial
        self.state = PhysiologicalState()

        thermal = self.state.thermal
        thermal.t_cr = init.t_core_c
        thermal.t_re = init.t_rectal_c
        thermal.t_sk = init.t_skin_c
        thermal.t_bm = init.t_mean_body_c
        thermal.t_cr_eq = init.t_core_req_c
        thermal.sk_cr_rel = init.sk_cr_rel

        sweat = self.state.sweat
        sweat.sw_pre = 0.0
        sweat.sw_tot = 0.0
        sweat.sw_tot_g = 0.0

        self.state.clock.time = 0
        self.state.clock.step_start = 0
        self.initialized = True
        logger.info(
            "Initialized PHS run: variant %d (%s core), Adu=%.3f m2",
            self.subject_constants.model_variant,
            self.core_model.algorithm.value,
            self.subject_constants.adu,
        )

    def _select_core_model(self, algorithm: CoreTempAlgorithm) -> CoreTempModel:
        if algorithm is CoreTempAlgorithm.STANDARD:
            policy = self.config.standard_core_policy
        else:
            policy = self.config.modified_core_policy
        return CORE_TEMP_MODELS[algorithm](policy=policy, tuning=self.config.solver)

    def mark_step_start(self):
        """Begin a new step block at the current time."""
        self.state.clock.step_start = self.state.clock.time

    # Constants

    def recompute_subject_constants(self):
        self.subject_constants = compute_subject_constants(self.subject)
        self.tracker.subject_recomputed()
        logger.debug("Subject constants: %s", self.subject_constants)
        self.recompute_step_constants()

    def recompute_step_constants(self):
        self.step_constants = compute_step_constants(
            self.subject, self.subject_constants, self.conditions
        )
        self.tracker.step_recomputed()

    # Stepping

    def advance_one_minute(self) -> SimulationState:
        """Advance the simulation by one minute and return the new snapshot."""
        if not self.initialized:
            raise SimulationNotInitialized("initialize() must be called before stepping")
        if self.tracker.subject_stale:
            raise StaleSubjectParameters(
                "Subject parameters changed after initialize(); start a new run"
            )
        if self.tracker.step_stale:
            self.recompute_step_constants()

        self.state.clock.time += 1
        self.state.thermal.shadow()

        self._step_required_core()
        self._step_skin_temperature()
        self._step_insulation()
        self._step_clothing_temperature()
        self._step_heat_balance()
        self._step_sweat()
        self._step_core_temperature()
        self._step_rectal_temperature()
        self._step_water_loss()

        return self.snapshot()

    def run_to_step_end(self) -> List[SimulationState]:
        """Advance until the clock reaches the current step end."""
        states = []
        while self.state.clock.time < self.conditions.step_end:
            states.append(self.advance_one_minute())
        return states

    # Snapshots

    def snapshot(self) -> SimulationState:
        thermal = self.state.thermal
        sweat = self.state.sweat
        clock = self.state.clock
        return SimulationState(
            time=clock.time,
            step_start_time=clock.step_start,
            step_end_time=self.conditions.step_end,
            t_cr_eq=thermal.t_cr_eq,
            t_sk=thermal.t_sk,
            sw_g=sweat.sw_g,
            sw_tot_g=sweat.sw_tot_g,
            t_cr=thermal.t_cr,
            t_re=thermal.t_re,
            t_cl=thermal.t_cl,
            sw=sweat.sw,
            e_pre=sweat.e_pre,
            sw_req=sweat.sw_req,
            sw_max=self.step_constants.sw_max if self.step_constants else NAN,
        )

    def result_snapshot(self) -> SimulationResult:
        limits = self.state.limits
        return SimulationResult(
            time=self.state.clock.time,
            t_re=self.state.thermal.t_re,
            sw_tot_g=self.state.sweat.sw_tot_g,
            d_tre=limits.rectal_temp,
            d_wl50=limits.water_loss50,
            d_wl95=limits.water_loss95,
        )

    def sample(self) -> Dict[str, float]:
        """Flat dump of the intermediate values of the last minute, keyed group_name."""
        thermal = self.state.thermal
        clothing = self.state.clothing
        sweat = self.state.sweat
        sc = self.step_constants
        return {
            "sim_time": self.state.clock.time,
            "sim_mod": self.subject_constants.model_variant if self.subject_constants else None,
            "core_t_cr_eq_ss": sc.t_cr_eq_ss if sc else NAN,
            "core_t_cr_eq": thermal.t_cr_eq,
            "core_d_stor_eq": thermal.d_stor_eq,
            "skin_t_sk": thermal.t_sk,
            "skin_pw_sk": thermal.pw_sk,
            "move_v_air_rel": sc.v_air_rel if sc else NAN,
            "cloth_cor_cl": clothing.cor_cl,
            "cloth_cor_ia": clothing.cor_ia,
            "cloth_cor_tot": clothing.cor_tot,
            "cloth_itot_dyn": clothing.itot_dyn,
            "cloth_icl_dyn": clothing.icl_dyn,
            "cloth_cor_e": clothing.cor_e,
            "cloth_rt_dyn": clothing.rt_dyn,
            "heatex_hc_dyn": clothing.hc_dyn,
            "cloth_f_acl_rad": clothing.f_acl_rad,
            "cloth_t_cl": thermal.t_cl,
            "heatex_hr": clothing.hr,
            "heatex_conv": clothing.conv,
            "heatex_rad": clothing.rad,
            "sweat_e_req": sweat.e_req,
            "sweat_e_max": sweat.e_max,
            "skin_w_req": sweat.w_req,
            "sweat_sw_pre": sweat.sw_pre,
            "skin_w_pre": sweat.w_pre,
            "sweat_e_pre": sweat.e_pre,
            "core_sk_cr_rel": thermal.sk_cr_rel,
            "core_t_cr": thermal.t_cr,
            "core_t_re": thermal.t_re,
            "sweat_sw_tot": sweat.sw_tot,
            "sweat_sw_tot_g": sweat.sw_tot_g,
        }

    # Parameters

    def _parameter_target(self, spec):
        return self.subject if spec.scope == SUBJECT else self.conditions

    def get_parameter(self, name: str):
        spec = get_spec(name)
        if spec.name == "post":
            return self.conditions.posture_code
        return getattr(self._parameter_target(spec), spec.attr)

    def set_parameter(self, name: str, value):
        """Write a named parameter and invalidate the constants that depend on it."""
        spec = get_spec(name)
        value = apply_range_policy(spec, value, self.config.range_policy)
        target = self._parameter_target(spec)
        setattr(target, spec.attr, value)
        if spec.scope == SUBJECT:
            self.subject.normalize_flags()
        self.tracker.mark_stale(spec.scope)
        logger.debug("Parameter %s set to %r", name, getattr(target, spec.attr))

    def set_parameters(self, values: Mapping[str, object]):
        for name, value in values.items():
            self.set_parameter(name, value)
