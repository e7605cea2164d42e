from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from phsim.core.engine import SimulationEngine
from phsim.core.state import SimulationConfig
from phsim.subject.subject import Subject
from phsim.subject.conditions import StepConditions


DEFAULT_SUBJECT = dict(height=1.8, weight=75.0, acclimatization=100, drink=1, model_variant=1)


@pytest.fixture
def subject():
    """Standard ISO 7933 subject used across most tests."""
    return Subject(**DEFAULT_SUBJECT)


@pytest.fixture
def conditions():
    """Hot environment of ISO 7933 example 1, one 480 min block."""
    return StepConditions(t_air=40.0, t_rad=40.0, pw_air=2.5, step_end=480)


@pytest.fixture
def engine(subject, conditions):
    """Engine initialized at t=0."""
    engine = SimulationEngine(subject, conditions, SimulationConfig())
    engine.initialize()
    return engine


@pytest.fixture
def advance_minutes():
    """Helper to advance an engine by a number of minutes, returning the snapshots."""
    def _advance(engine, minutes):
        return [engine.advance_one_minute() for _ in range(minutes)]

    return _advance
