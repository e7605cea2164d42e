"""
Core and rectal temperature prediction.

Two interchangeable core temperature models are provided:

- StandardCoreTemp (variants 1/2): ISO 7933 procedure; the skin/core mass
  fraction is iterated together with the core temperature.
- ModifiedCoreTemp (variants 3/4): the mean body temperature is advanced
  from the heat storage first, then inverted for the core temperature
  through a piecewise skin/core mass fraction.

The model is picked once per run from CORE_TEMP_MODELS.
"""

from dataclasses import dataclass
import logging

from phsim.core.constants import (
    SK_CR_REL_MAX,
    SK_CR_REL_MIN,
    SK_CR_REL_PIVOT_C,
    SK_CR_REL_UPPER_C,
    SK_CR_REL_SLOPE_STANDARD,
    SK_CR_REL_SLOPE_MODIFIED,
    SolverTuning,
)
from phsim.core.enums import CoreTempAlgorithm, ConvergencePolicy
from phsim.core.errors import ConvergenceError
from phsim.core.utils import clamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoreTempResult:
    t_cr: float
    sk_cr_rel: float
    t_bm: float
    iterations: int
    converged: bool


class CoreTempModel:
    """Base class: holds the iteration bound and the exhaustion policy."""
    algorithm: CoreTempAlgorithm = None
    label = "core temperature"

    def __init__(self, policy: ConvergencePolicy = ConvergencePolicy.RAISE,
                 tuning: SolverTuning = SolverTuning()):
        self.policy = policy
        self.max_iter = tuning.core_max_iter
        self.tol = tuning.core_tol_c

    def _exhausted(self, best: float, time=None):
        """Apply the policy once the iteration bound is used up."""
        if self.policy is ConvergencePolicy.RAISE:
            raise ConvergenceError(self.label, self.max_iter, best, time)
        logger.warning(
            "%s did not converge within %d iterations at t=%s; using %.4f",
            self.label, self.max_iter, time, best,
        )

    def solve(self, d_storage, sp_heat, t_cr_prev, t_sk, t_sk_prev,
              sk_cr_rel_prev, t_bm_prev, time=None) -> CoreTempResult:
        raise NotImplementedError


class StandardCoreTemp(CoreTempModel):
    algorithm = CoreTempAlgorithm.STANDARD
    label = "standard core temperature"

    @staticmethod
    def skin_core_fraction(t_cr: float) -> float:
        return clamp(
            SK_CR_REL_MAX - SK_CR_REL_SLOPE_STANDARD * (t_cr - SK_CR_REL_PIVOT_C),
            SK_CR_REL_MIN,
            SK_CR_REL_MAX,
        )

    def solve(self, d_storage, sp_heat, t_cr_prev, t_sk, t_sk_prev,
              sk_cr_rel_prev, t_bm_prev, time=None) -> CoreTempResult:
        t_cr_guess = t_cr_prev
        t_cr = t_cr_prev
        sk_cr_rel = sk_cr_rel_prev
        for iteration in range(1, self.max_iter + 1):
            sk_cr_rel = self.skin_core_fraction(t_cr_guess)
            t_cr = d_storage / sp_heat + t_sk_prev * sk_cr_rel_prev / 2.0 - t_sk * sk_cr_rel / 2.0
            t_cr = (t_cr + t_cr_prev * (1.0 - sk_cr_rel_prev / 2.0)) / (1.0 - sk_cr_rel / 2.0)
            if abs(t_cr - t_cr_guess) <= self.tol:
                return CoreTempResult(t_cr, sk_cr_rel, t_bm_prev, iteration, True)
            t_cr_guess = (t_cr_guess + t_cr) / 2.0
        self._exhausted(t_cr, time)
        return CoreTempResult(t_cr, sk_cr_rel, t_bm_prev, self.max_iter, False)


class ModifiedCoreTemp(CoreTempModel):
    algorithm = CoreTempAlgorithm.MODIFIED
    label = "modified core temperature"

    @staticmethod
    def skin_core_fraction(t_cr: float) -> float:
        """Part of the body mass at the skin/core mean temperature."""
        if t_cr < SK_CR_REL_PIVOT_C:
            return SK_CR_REL_MAX
        if t_cr > SK_CR_REL_UPPER_C:
            return SK_CR_REL_MIN
        return SK_CR_REL_MAX - SK_CR_REL_SLOPE_MODIFIED * (t_cr - SK_CR_REL_PIVOT_C)

    def core_from_mean_body(self, t_bm: float, t_sk: float):
        """
        Invert Tbm = Tcr * (1 - f/2) + Tsk * f/2 for Tcr.

        Returns (t_cr, iterations, converged).
        """
        t_cr = t_bm
        for iteration in range(1, self.max_iter + 1):
            half_fraction = self.skin_core_fraction(t_cr) * 0.5
            t_bm_est = t_cr * (1.0 - half_fraction) + t_sk * half_fraction
            diff = t_bm_est - t_bm
            if abs(diff) <= self.tol:
                return t_cr, iteration, True
            t_cr -= diff * 0.5
        return t_cr, self.max_iter, False

    def solve(self, d_storage, sp_heat, t_cr_prev, t_sk, t_sk_prev,
              sk_cr_rel_prev, t_bm_prev, time=None) -> CoreTempResult:
        t_bm = t_bm_prev + d_storage / sp_heat
        t_cr, iterations, converged = self.core_from_mean_body(t_bm, t_sk)
        if not converged:
            self._exhausted(t_cr, time)
        # The mass fraction carried between minutes is not updated by this model.
        return CoreTempResult(t_cr, sk_cr_rel_prev, t_bm, iterations, converged)


CORE_TEMP_MODELS = {
    CoreTempAlgorithm.STANDARD: StandardCoreTemp,
    CoreTempAlgorithm.MODIFIED: ModifiedCoreTemp,
}


def rectal_temperature(t_re_prev: float, t_cr: float) -> float:
    """Rectal temperature after one minute."""
    return t_re_prev + (2.0 * t_cr - 1.962 * t_re_prev - 1.31) / 9.0
