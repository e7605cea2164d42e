import json

import pandas as pd

from phsim.cli import main, build_sim_config
from phsim.core.enums import ConvergencePolicy, RangePolicy


def write_config(tmp_path, data):
    path = tmp_path / "run.json"
    path.write_text(json.dumps(data))
    return str(path)


def test_run_multi_step(tmp_path, capsys):
    config = write_config(tmp_path, {
        "tag": "shift",
        "parameters": {"sim_mod": 1, "mass": 80, "Tair": 38},
        "steps": [{"timestep": 60}, {"timestep": 90, "Met": 250}],
    })
    assert main(["run", "--config", config, "--print-every", "30"]) == 0
    out = capsys.readouterr().out
    assert "shift_1" in out
    assert "shift_2" in out
    assert "Time:   30 min" in out
    assert "Final: t=90 min" in out


def test_run_with_recording(tmp_path):
    config = write_config(tmp_path, {"parameters": {"timestep": 20}})
    record_dir = tmp_path / "rec"
    assert main(["run", "--config", config, "--print-every", "0",
                 "--record", "--record-dir", str(record_dir)]) == 0
    files = list(record_dir.glob("phsim_log_*.csv"))
    assert len(files) == 1
    frame = pd.read_csv(files[0])
    assert list(frame["time"]) == list(range(0, 21))


def test_run_missing_config(tmp_path):
    assert main(["run", "--config", str(tmp_path / "absent.json")]) == 1


def test_run_rejects_unknown_parameter(tmp_path):
    config = write_config(tmp_path, {"parameters": {"Tglobe": 50}})
    assert main(["run", "--config", config]) == 1


def test_run_rejects_out_of_range_under_reject(tmp_path):
    config = write_config(tmp_path, {
        "config": {"range_policy": "reject"},
        "parameters": {"Met": 600},
    })
    assert main(["run", "--config", config]) == 1


def test_build_sim_config():
    config = build_sim_config({"range_policy": "clamp", "modified_core_policy": "raise"})
    assert config.range_policy is RangePolicy.CLAMP
    assert config.modified_core_policy is ConvergencePolicy.RAISE
    assert config.standard_core_policy is ConvergencePolicy.RAISE


def test_examples_command(tmp_path, capsys):
    out_csv = tmp_path / "iso.csv"
    assert main(["examples", "--variants", "1", "--csv", str(out_csv)]) == 0
    out = capsys.readouterr().out
    assert "ISO7933_1_s1" in out
    assert "ISO7933_10_s1" in out
    assert "MDAPE" in out
    assert len(pd.read_csv(out_csv)) == 10
