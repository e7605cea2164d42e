import csv
import logging
from dataclasses import fields

from phsim.core.engine import SimulationEngine
from phsim.core.recorder import DataRecorder
from phsim.core.state import SimulationState


def record_minutes(recorder, minutes):
    engine = SimulationEngine()
    engine.initialize()
    for _ in range(minutes):
        recorder.log(engine.advance_one_minute())


def test_header_and_rows(tmp_path):
    recorder = DataRecorder(output_dir=str(tmp_path), filename="log.csv")
    recorder.start()
    record_minutes(recorder, 5)
    recorder.stop()

    with open(tmp_path / "log.csv", newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == [f.name for f in fields(SimulationState)]
    assert len(rows) == 6
    assert [int(float(r[0])) for r in rows[1:]] == [1, 2, 3, 4, 5]
    assert recorder.rows_written == 5
    assert not recorder.is_recording


def test_sample_interval(tmp_path):
    recorder = DataRecorder(output_dir=str(tmp_path), sample_interval_min=5.0, filename="sparse.csv")
    recorder.start()
    record_minutes(recorder, 20)
    recorder.stop()
    rows = (tmp_path / "sparse.csv").read_text().splitlines()
    # minutes 1, 6, 11, 16
    assert len(rows) == 5


def test_log_ignored_when_not_started(tmp_path):
    recorder = DataRecorder(output_dir=str(tmp_path), filename="never.csv")
    record_minutes(recorder, 3)
    assert recorder.rows_written == 0
    assert not (tmp_path / "never.csv").exists()


def test_default_filename(tmp_path):
    recorder = DataRecorder(output_dir=str(tmp_path))
    assert recorder.filename.startswith("phsim_log_")
    assert recorder.filename.endswith(".csv")


def test_start_failure_logged(tmp_path, caplog):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    recorder = DataRecorder(output_dir=str(blocker / "sub"), filename="log.csv")
    with caplog.at_level(logging.ERROR, logger="phsim.core.recorder"):
        recorder.start()
    assert not recorder.is_recording
    assert "Failed to start recording" in caplog.text
