import pytest

from phsim.core.engine import SimulationEngine
from phsim.core.recorder import DataRecorder
from phsim.core.runner import SimulationRunner, RESULT_FIELDS
from phsim.subject.subject import Subject


@pytest.fixture
def runner():
    return SimulationRunner(SimulationEngine(Subject(model_variant=1)))


def run_three_blocks(runner):
    engine = runner.engine
    engine.set_parameter("timestep", 15)
    runner.run_simulation("block", from_start=True)
    engine.set_parameters({"timestep": 35, "Tair": 45.0})
    runner.run_simulation("block", from_start=False)
    engine.set_parameters({"timestep": 45, "Met": 250})
    runner.run_simulation("block", from_start=False)


class TestMultiStep:
    def test_block_boundaries(self, runner):
        run_three_blocks(runner)
        assert [r.time for r in runner.results] == [0, 15, 35, 45]
        assert len(runner.step_log) == 46
        assert runner.step_log[0].time == 0
        assert runner.step_log[-1].time == 45
        assert runner.step_log[20].step_start_time == 15
        assert runner.step_log[-1].step_start_time == 35

    def test_run_log_records_inputs(self, runner):
        run_three_blocks(runner)
        assert len(runner.run_log) == 3
        assert runner.run_log[0].step_inputs["Tair"] == 40.0
        assert runner.run_log[1].step_inputs["Tair"] == 45.0
        assert runner.run_log[2].step_inputs["Met"] == 250
        assert runner.run_log[0].subject_inputs["sim_mod"] == 1

    def test_blocks_continue_state(self, runner):
        run_three_blocks(runner)
        totals = [s.sw_tot_g for s in runner.step_log]
        assert all(b >= a for a, b in zip(totals, totals[1:]))

    def test_new_run_clears_step_log(self, runner):
        run_three_blocks(runner)
        runner.engine.set_parameter("timestep", 10)
        runner.run_simulation("again", from_start=True)
        assert len(runner.step_log) == 11
        assert len(runner.results) == 2
        assert len(runner.run_log) == 4

    def test_callback_before_each_minute(self):
        seen = []
        runner = SimulationRunner(SimulationEngine(), step_callback=seen.append)
        runner.engine.set_parameter("timestep", 5)
        runner.run_simulation("cb")
        assert seen == [0, 1, 2, 3, 4]

    def test_step_log_can_be_disabled(self):
        runner = SimulationRunner(SimulationEngine(), keep_step_log=False)
        runner.engine.set_parameter("timestep", 5)
        runner.run_simulation("quiet")
        assert runner.step_log == []
        assert runner.results[-1].time == 5


class TestFrames:
    def test_step_log_frame(self, runner):
        run_three_blocks(runner)
        frame = runner.step_log_frame()
        assert len(frame) == 46
        assert list(frame["time"])[:3] == [0, 1, 2]
        assert "t_re" in frame.columns
        assert "sw_tot_g" in frame.columns

    def test_results_frame(self, runner):
        run_three_blocks(runner)
        frame = runner.results_frame()
        assert list(frame.columns) == list(RESULT_FIELDS)
        assert list(frame["time"]) == [0, 15, 35, 45]

    def test_unreached_markers_reported_as_end_time(self, runner):
        run_three_blocks(runner)
        frame = runner.run_log_frame()
        assert list(frame["d_tre"]) == [15, 35, 45]
        assert list(frame["d_wl95"]) == [15, 35, 45]
        assert frame["target_t_re"].isna().all()

    def test_expected_targets(self, runner):
        runner.engine.set_parameter("timestep", 10)
        runner.run_simulation("target", expected=(480, 37.5, 480, 6168, 439, 298))
        row = runner.run_log_frame().iloc[0]
        assert row["name"] == "target"
        assert row["target_t_re"] == 37.5
        assert row["target_sw_tot_g"] == 6168
        assert row["Tair"] == 40.0


def test_recorder_receives_every_minute(tmp_path):
    recorder = DataRecorder(output_dir=str(tmp_path), filename="run.csv")
    recorder.start()
    runner = SimulationRunner(SimulationEngine(), recorder=recorder)
    runner.engine.set_parameter("timestep", 12)
    runner.run_simulation("rec")
    recorder.stop()
    lines = (tmp_path / "run.csv").read_text().splitlines()
    # header + initial state + 12 minutes
    assert len(lines) == 14
    assert lines[0].startswith("time,")
