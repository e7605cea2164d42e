"""
ISO 7933 Annex worked examples.

Ten reference input sets with their published 480 min results, run under
each of the four model variants. Targets are listed as
[time, Tre, D_Tre, SWtotg, Dwl50, Dwl95]; 480 for a duration means the
limit was not reached within the exposure.
"""

from typing import Dict, Iterable, List, Optional, Tuple
import logging

import pandas as pd

from .engine import SimulationEngine
from .metrics import compute_target_metrics
from .runner import SimulationRunner
from .state import SimulationConfig

logger = logging.getLogger(__name__)

EXAMPLE_DURATION_MIN = 480

EXAMPLE_DEFAULTS = {
    "accl": 100,
    "drink": 1,
    "height": 1.8,
    "mass": 75,
    "sim_mod": 1,
    "post": 2,
    "Tair": 35,
    "Pw_air": 3.0,
    "Trad": 40,
    "v_air": 0.3,
    "Met": 150,
    "Icl": 0.5,
    "im_st": 0.38,
    "fAref": 0.54,
    "Fr": 0.97,
    "walk_dir": None,
    "v_walk": None,
    "work": 0,
}

EXAMPLE_OVERRIDES = (
    {"post": 2, "Tair": 40, "Pw_air": 2.5},
    {"post": 2, "Pw_air": 4, "Trad": 35},
    {"post": 2, "Tair": 30, "Trad": 50},
    {"accl": 0, "post": 2, "Tair": 28, "Trad": 58},
    {"accl": 0, "post": 1, "Trad": 35, "v_air": 1},
    {"post": 1, "Tair": 43, "Trad": 43, "Met": 103},
    {"accl": 0, "post": 2, "Trad": 35, "Met": 206},
    {"accl": 0, "post": 2, "Tair": 34, "Trad": 34, "Icl": 1},
    {"post": 2, "Tair": 40, "Icl": 0.4},
    {"post": 2, "Tair": 40, "Icl": 0.4, "im_st": 0.38, "fAref": 0.54, "Fr": 0.97,
     "walk_dir": 90, "v_walk": 1},
)

EXAMPLE_TARGETS = (
    (480, 37.5, 480, 6168, 439, 298),
    (480, 39.8, 74, 6935, 385, 256),
    (480, 37.7, 480, 7166, 380, 258),
    (480, 41.2, 57, 5807, 466, 314),
    (480, 37.6, 480, 3892, 480, 463),
    (480, 37.3, 480, 6763, 401, 271),
    (480, 39.2, 70, 7236, 372, 247),
    (480, 41.0, 67, 5548, 480, 318),
    (480, 37.5, 480, 6684, 407, 276),
    (480, 37.6, 480, 5379, 480, 339),
)

VARIANT_TAGS = ((1, "s1"), (2, "s2"), (3, "s1m"), (4, "s2m"))

COMPARED_FIELDS = ("t_re", "d_tre", "sw_tot_g", "d_wl50", "d_wl95")


def example_count() -> int:
    return len(EXAMPLE_OVERRIDES)


def example_parameters(index: int) -> Dict[str, object]:
    """Full parameter set of example `index` (0-based)."""
    if not 0 <= index < len(EXAMPLE_OVERRIDES):
        raise ValueError(f"No ISO 7933 example {index} (0-{len(EXAMPLE_OVERRIDES) - 1})")
    params = dict(EXAMPLE_DEFAULTS)
    params.update(EXAMPLE_OVERRIDES[index])
    return params


def example_tag(index: int, variant_tag: str) -> str:
    return f"ISO7933_{index + 1}_{variant_tag}"


def example_batch(variants: Optional[Iterable[int]] = None) -> List[Tuple[str, int, Dict[str, object]]]:
    """
    All example runs as (tag, example index, parameters), variants innermost.
    """
    wanted = set(variants) if variants is not None else None
    batch = []
    for index in range(len(EXAMPLE_OVERRIDES)):
        base = example_parameters(index)
        for variant, suffix in VARIANT_TAGS:
            if wanted is not None and variant not in wanted:
                continue
            params = dict(base)
            params["sim_mod"] = variant
            batch.append((example_tag(index, suffix), index, params))
    return batch


def run_examples(variants: Optional[Iterable[int]] = None,
                 config: Optional[SimulationConfig] = None) -> pd.DataFrame:
    """Run the example batch for 480 min each and return the run log table."""
    engine = SimulationEngine(config=config)
    runner = SimulationRunner(engine, keep_step_log=False)
    for tag, index, params in example_batch(variants):
        engine.set_parameters(params)
        engine.set_parameter("timestep", EXAMPLE_DURATION_MIN)
        runner.run_simulation(tag, from_start=True, expected=EXAMPLE_TARGETS[index])
    return runner.run_log_frame()


def compare_with_targets(frame: pd.DataFrame) -> Dict[str, dict]:
    """Deviation metrics per compared result field."""
    summary = {}
    for field in COMPARED_FIELDS:
        summary[field] = compute_target_metrics(frame[field], frame[f"target_{field}"])
        logger.debug("%s deviation: %s", field, summary[field])
    return summary
