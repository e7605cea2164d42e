from dataclasses import dataclass, field
from typing import Optional
import math

from .constants import SolverTuning, InitialConditions
from .enums import ConvergencePolicy, RangePolicy, CoreTempAlgorithm

NAN = math.nan


@dataclass
class SimulationConfig:
    """Configuration for the simulation engine."""
    # Out-of-range parameter values are passed through unless told otherwise.
    range_policy: RangePolicy = RangePolicy.PASS_THROUGH

    # Core temperature solve exhaustion handling, per algorithm.
    standard_core_policy: ConvergencePolicy = ConvergencePolicy.RAISE
    modified_core_policy: ConvergencePolicy = ConvergencePolicy.WARN

    solver: SolverTuning = field(default_factory=SolverTuning)
    initial: InitialConditions = field(default_factory=InitialConditions)


@dataclass(frozen=True)
class SubjectConstants:
    """Quantities fixed for the whole run."""
    model_variant: int
    core_algorithm: CoreTempAlgorithm
    adu: float             # Body surface area (m2)
    sp_heat: float         # Specific heat (W.min/K/m2)
    sweat_max50: float     # Water loss limit, 50% of population (g)
    sweat_max95: float     # Water loss limit, 95% of population (g)
    w_max: float           # Maximum skin wettedness
    const_tcreq: float     # Required core temperature filter decay
    const_tsk: float       # Skin temperature filter decay
    const_sw: float        # Sweat rate filter decay


@dataclass(frozen=True)
class StepConstants:
    """Quantities fixed for one step block."""
    f_adu_rad: float       # Effective radiating area fraction
    f_adu_rad_aux: float   # sigma * f_adu_rad
    sw_max: float          # Maximum sweat rate (W/m2)
    t_cr_eq_ss: float      # Steady-state required core temperature (C)
    icl_st: float          # Static clothing insulation (m2K/W)
    f_acl: float           # Clothing area factor
    ia_st: float           # Static boundary layer insulation (m2K/W)
    itot_st: float         # Total static insulation (m2K/W)
    v_walk: float          # Walking speed used by the dynamic corrections (m/s)
    v_air_rel: float       # Relative air velocity (m/s)
    t_resp: float          # Expired air temperature (C)
    c_resp: float          # Respiratory convective loss (W/m2)
    e_resp: float          # Respiratory evaporative loss (W/m2)
    z: float               # Baseline convective coefficient (W/m2K)


@dataclass(slots=True)
class ThermalState:
    t_cr: float = NAN         # Core temperature
    t_re: float = NAN         # Rectal temperature
    t_sk: float = NAN         # Mean skin temperature
    t_cl: float = NAN         # Clothing surface temperature
    t_bm: float = NAN         # Mean body temperature
    t_cr_eq: float = NAN      # Required core temperature (filtered)
    sk_cr_rel: float = NAN    # Skin/core mass fraction
    pw_sk: float = NAN        # Saturated vapour pressure at skin (kPa)
    d_stor_eq: float = NAN    # Required heat storage increment (W/m2)

    # Previous-minute shadows.
    t_cr_prev: float = NAN
    t_re_prev: float = NAN
    t_sk_prev: float = NAN
    t_bm_prev: float = NAN
    t_cr_eq_prev: float = NAN
    sk_cr_rel_prev: float = NAN

    def shadow(self):
        """Copy current values into the previous-minute slots."""
        self.t_cr_prev = self.t_cr
        self.t_re_prev = self.t_re
        self.t_sk_prev = self.t_sk
        self.t_bm_prev = self.t_bm
        self.t_cr_eq_prev = self.t_cr_eq
        self.sk_cr_rel_prev = self.sk_cr_rel


@dataclass(slots=True)
class ClothingState:
    cor_cl: float = NAN
    cor_ia: float = NAN
    cor_tot: float = NAN
    cor_e: float = NAN
    itot_dyn: float = NAN
    icl_dyn: float = NAN
    im_dyn: float = NAN
    rt_dyn: float = NAN
    f_acl_rad: float = NAN
    hc_dyn: float = NAN
    hr: float = NAN
    conv: float = NAN
    rad: float = NAN


@dataclass(slots=True)
class SweatState:
    e_req: float = NAN
    e_max: float = NAN
    e_pre: float = NAN
    w_req: float = NAN
    w_pre: float = NAN
    sw_req: float = NAN
    sw_pre: float = NAN
    sw: float = NAN
    sw_g: float = NAN
    sw_tot: float = NAN
    sw_tot_g: float = NAN


@dataclass(slots=True)
class LimitMarkers:
    """First-crossing times (min); None until reached."""
    rectal_temp: Optional[int] = None
    water_loss50: Optional[int] = None
    water_loss95: Optional[int] = None

    def latch(self, name: str, time: int, crossed: bool) -> bool:
        """Set a marker the first time its threshold is crossed."""
        if crossed and getattr(self, name) is None:
            setattr(self, name, time)
            return True
        return False


@dataclass(slots=True)
class SimulationClock:
    time: float = NAN
    step_start: float = NAN


@dataclass
class PhysiologicalState:
    """All mutable state of one run, owned by the engine."""
    thermal: ThermalState = field(default_factory=ThermalState)
    clothing: ClothingState = field(default_factory=ClothingState)
    sweat: SweatState = field(default_factory=SweatState)
    limits: LimitMarkers = field(default_factory=LimitMarkers)
    clock: SimulationClock = field(default_factory=SimulationClock)


@dataclass(frozen=True, slots=True)
class SimulationState:
    """Immutable snapshot of the simulation at a specific minute."""
    time: float
    step_start_time: float
    step_end_time: float
    t_cr_eq: float      # Required core temperature (C)
    t_sk: float         # Skin temperature (C)
    sw_g: float         # Water loss this minute (g)
    sw_tot_g: float     # Cumulative water loss (g)
    t_cr: float         # Core temperature (C)
    t_re: float         # Rectal temperature (C)
    t_cl: float         # Clothing temperature (C)
    sw: float           # Water loss rate (W/m2)
    e_pre: float        # Predicted evaporation rate (W/m2)
    sw_req: float       # Required sweat rate (W/m2)
    sw_max: float       # Maximum sweat rate (W/m2)


@dataclass(frozen=True, slots=True)
class SimulationResult:
    """Cumulative outcome at a specific minute. None = limit not reached."""
    time: float
    t_re: float
    sw_tot_g: float
    d_tre: Optional[int] = None
    d_wl50: Optional[int] = None
    d_wl95: Optional[int] = None
