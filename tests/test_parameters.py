import logging

import pytest

from phsim.core.engine import SimulationEngine
from phsim.core.enums import Posture, RangePolicy
from phsim.core.errors import ConfigurationError, ParameterRangeError
from phsim.core.parameters import (
    PARAMETERS,
    SUBJECT_PARAMETERS,
    STEP_PARAMETERS,
    apply_range_policy,
    defaults,
    get_spec,
)
from phsim.core.staleness import SUBJECT, STEP
from phsim.core.state import SimulationConfig


class TestRegistry:
    def test_public_names(self):
        assert [p.name for p in SUBJECT_PARAMETERS] == ["accl", "drink", "height", "mass", "sim_mod"]
        assert [p.name for p in STEP_PARAMETERS] == [
            "post", "Tair", "Pw_air", "Trad", "v_air", "Met", "Icl", "im_st",
            "fAref", "Fr", "walk_dir", "v_walk", "work", "timestep",
        ]

    def test_scopes(self):
        assert all(p.scope == SUBJECT for p in SUBJECT_PARAMETERS)
        assert all(p.scope == STEP for p in STEP_PARAMETERS)

    def test_documented_ranges(self):
        spec = get_spec("Trad")
        assert (spec.min, spec.max, spec.unit) == (15, 110, "C")
        assert get_spec("v_walk").nullable
        assert not get_spec("Met").nullable

    def test_defaults(self):
        assert defaults(SUBJECT) == {"accl": 100, "drink": 1, "height": 1.8, "mass": 75, "sim_mod": 0}
        step = defaults(STEP)
        assert step["Tair"] == 40
        assert step["walk_dir"] is None
        assert step["timestep"] == 30
        assert len(defaults()) == len(PARAMETERS)

    def test_unknown_name(self):
        with pytest.raises(ConfigurationError):
            get_spec("Tglobe")


class TestRangePolicy:
    def test_pass_through(self):
        assert apply_range_policy(get_spec("Tair"), 55.0, RangePolicy.PASS_THROUGH) == 55.0

    def test_clamp_logs(self, caplog):
        with caplog.at_level(logging.WARNING, logger="phsim.core.parameters"):
            value = apply_range_policy(get_spec("Tair"), 55.0, RangePolicy.CLAMP)
        assert value == 50
        assert "clamped" in caplog.text

    def test_reject(self):
        with pytest.raises(ParameterRangeError):
            apply_range_policy(get_spec("Met"), 90.0, RangePolicy.REJECT)

    def test_range_error_is_value_error(self):
        with pytest.raises(ValueError):
            apply_range_policy(get_spec("Met"), 500.0, RangePolicy.REJECT)

    def test_in_range_untouched(self):
        assert apply_range_policy(get_spec("Met"), 200.0, RangePolicy.REJECT) == 200.0

    def test_nullable(self):
        assert apply_range_policy(get_spec("walk_dir"), None, RangePolicy.REJECT) is None
        assert apply_range_policy(get_spec("v_walk"), float("nan"), RangePolicy.CLAMP) is None

    def test_undefined_rejected_for_required(self):
        with pytest.raises(ParameterRangeError):
            apply_range_policy(get_spec("Tair"), None, RangePolicy.PASS_THROUGH)

    @pytest.mark.parametrize("policy", list(RangePolicy))
    def test_posture_member_stored_as_code(self, policy):
        assert apply_range_policy(get_spec("post"), Posture.CROUCHING, policy) == 3


class TestEngineBinding:
    def test_set_and_get(self):
        engine = SimulationEngine()
        engine.set_parameters({"Tair": 35.0, "Pw_air": 4.0, "mass": 80.0, "timestep": 120})
        assert engine.conditions.t_air == 35.0
        assert engine.get_parameter("Pw_air") == 4.0
        assert engine.subject.weight == 80.0
        assert engine.conditions.step_end == 120

    def test_posture_reported_as_code(self):
        engine = SimulationEngine()
        assert engine.get_parameter("post") == 2
        engine.set_parameter("post", 1)
        assert engine.get_parameter("post") == 1

    def test_posture_member_accepted(self):
        engine = SimulationEngine(config=SimulationConfig(range_policy=RangePolicy.REJECT))
        engine.initialize()
        engine.set_parameter("post", Posture.SITTING)
        assert engine.get_parameter("post") == 1
        assert engine.tracker.step_stale
        engine.advance_one_minute()
        assert engine.step_constants.f_adu_rad == pytest.approx(0.7)

    def test_subject_flags_normalized(self):
        engine = SimulationEngine()
        engine.set_parameter("accl", 30)
        engine.set_parameter("drink", 0)
        assert engine.get_parameter("accl") == 100
        assert engine.get_parameter("drink") == 0

    def test_scope_marks_layer_stale(self):
        engine = SimulationEngine()
        engine.initialize()
        engine.set_parameter("v_air", 1.0)
        assert engine.tracker.step_stale
        assert not engine.tracker.subject_stale
        engine.set_parameter("height", 1.7)
        assert engine.tracker.subject_stale

    def test_engine_applies_configured_policy(self):
        engine = SimulationEngine(config=SimulationConfig(range_policy=RangePolicy.CLAMP))
        engine.set_parameter("v_walk", 2.0)
        assert engine.conditions.v_walk == 1.2

        strict = SimulationEngine(config=SimulationConfig(range_policy=RangePolicy.REJECT))
        with pytest.raises(ParameterRangeError):
            strict.set_parameter("Icl", 2.0)
        assert strict.conditions.icl == 0.5

    def test_unknown_parameter_on_engine(self):
        with pytest.raises(ConfigurationError):
            SimulationEngine().set_parameter("nope", 1)
