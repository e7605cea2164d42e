import pytest

from phsim.core.iso_examples import (
    EXAMPLE_TARGETS,
    compare_with_targets,
    example_batch,
    example_count,
    example_parameters,
    run_examples,
)
from phsim.core.metrics import compute_performance_error, compute_target_metrics


@pytest.fixture(scope="module")
def iso_frame():
    """All ten examples under the ISO 7933 variant, 480 min each."""
    return run_examples(variants=[1])


class TestExampleData:
    def test_ten_examples(self):
        assert example_count() == 10
        assert len(EXAMPLE_TARGETS) == 10

    def test_parameters_merge_defaults(self):
        params = example_parameters(4)
        assert params["accl"] == 0
        assert params["post"] == 1
        assert params["v_air"] == 1
        assert params["Tair"] == 35
        assert params["walk_dir"] is None

    def test_walking_example(self):
        params = example_parameters(9)
        assert params["walk_dir"] == 90
        assert params["v_walk"] == 1

    def test_index_out_of_range(self):
        with pytest.raises(ValueError):
            example_parameters(10)

    def test_batch_tags(self):
        batch = example_batch()
        assert len(batch) == 40
        assert [tag for tag, _, _ in batch[:4]] == [
            "ISO7933_1_s1", "ISO7933_1_s2", "ISO7933_1_s1m", "ISO7933_1_s2m",
        ]
        assert [params["sim_mod"] for _, _, params in batch[:4]] == [1, 2, 3, 4]
        assert batch[-1][0] == "ISO7933_10_s2m"

    def test_batch_variant_filter(self):
        batch = example_batch(variants=[3])
        assert len(batch) == 10
        assert all(tag.endswith("_s1m") for tag, _, _ in batch)


class TestReferenceResults:
    @pytest.mark.parametrize("index", range(10))
    def test_rectal_temperature(self, iso_frame, index):
        row = iso_frame.iloc[index]
        assert row["time"] == 480
        assert row["t_re"] == pytest.approx(row["target_t_re"], abs=0.15)

    @pytest.mark.parametrize("index", range(10))
    def test_water_loss(self, iso_frame, index):
        row = iso_frame.iloc[index]
        assert row["sw_tot_g"] == pytest.approx(row["target_sw_tot_g"], rel=0.03)

    @pytest.mark.parametrize("index", range(10))
    def test_limit_durations(self, iso_frame, index):
        row = iso_frame.iloc[index]
        for field in ("d_tre", "d_wl50", "d_wl95"):
            assert abs(row[field] - row[f"target_{field}"]) <= 5, field

    def test_summary_metrics(self, iso_frame):
        summary = compare_with_targets(iso_frame)
        assert set(summary) == {"t_re", "d_tre", "sw_tot_g", "d_wl50", "d_wl95"}
        assert summary["t_re"]["MDAPE"] < 0.5
        assert summary["sw_tot_g"]["MDAPE"] < 3.0


def test_modified_variants_plausible():
    frame = run_examples(variants=[2, 3, 4])
    assert len(frame) == 30
    assert frame["t_re"].between(36.5, 44.0).all()
    assert (frame["sw_tot_g"] > 0).all()


class TestMetrics:
    def test_performance_error(self):
        pe = compute_performance_error([110.0, 90.0, 5.0], [100.0, 100.0, 0.0])
        assert list(pe) == pytest.approx([10.0, -10.0, 0.0])

    def test_target_metrics_ignore_nan(self):
        metrics = compute_target_metrics([101.0, float("nan"), 98.0], [100.0, 100.0, 100.0])
        assert metrics["MaxAbsError"] == pytest.approx(2.0)
        assert metrics["MDAPE"] == pytest.approx(1.5)

    def test_target_metrics_empty(self):
        assert compute_target_metrics([], []) == {"MDPE": 0.0, "MDAPE": 0.0, "MaxAbsError": 0.0}
