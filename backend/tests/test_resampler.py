"""
Tests for interval statistics and 1 Hz resampling.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from aero_ingest.models.telemetry import IntervalStatistics, NormalizedRecord
from aero_ingest.services.resampler import (
    analyze_time_intervals,
    generate_uniform_timestamps,
    interpolate_all,
    interpolate_to_uniform,
    needs_resampling,
    resample_record,
)


def _record(timestamps, **optional):
    n = len(timestamps)
    base = np.arange(n, dtype=np.float64)
    return NormalizedRecord(
        timestamps=np.asarray(timestamps, dtype=np.float64),
        velocity=base * 2.0,
        power=base * 10.0 + 100.0,
        air_speed=base + 5.0,
        altitude=np.full(n, 50.0),
        position_lat=np.full(n, 43.3858622),
        position_long=np.linspace(-1.65, -1.64, n),
        **optional,
    )


class TestIntervalStatistics:
    """Tests for timestamp gap statistics."""

    def test_known_gaps(self):
        stats = analyze_time_intervals([0, 1, 2, 4, 5])

        assert stats.min == 1.0
        assert stats.max == 2.0
        assert stats.mean == pytest.approx(1.25)
        assert stats.median == 1.0
        assert stats.standard_deviation == pytest.approx(np.sqrt(0.1875))

    def test_short_sequences_are_zero(self):
        zero = IntervalStatistics(min=0.0, max=0.0, mean=0.0, median=0.0, standard_deviation=0.0)

        assert analyze_time_intervals([]) == zero
        assert analyze_time_intervals([12.5]) == zero

    def test_even_count_takes_upper_median(self):
        # Gaps [1, 2]: the upper element, not their average
        stats = analyze_time_intervals([0, 1, 3])

        assert stats.median == 2.0

    def test_uniform_series_has_zero_spread(self):
        stats = analyze_time_intervals(np.arange(100, 200, dtype=float))

        assert stats.standard_deviation == 0.0
        assert not needs_resampling(stats)

    def test_needs_resampling_threshold(self):
        stats = analyze_time_intervals([0, 0.5, 2.0, 2.4, 4.0])

        assert needs_resampling(stats)
        assert not needs_resampling(stats, threshold=5.0)


class TestUniformTimestamps:
    """Tests for grid generation."""

    def test_rounds_outward(self):
        assert_array_equal(generate_uniform_timestamps(0.4, 3.2), [0, 1, 2, 3, 4])

    def test_integer_bounds_inclusive(self):
        assert_array_equal(generate_uniform_timestamps(5.0, 8.0), [5, 6, 7, 8])

    def test_single_point(self):
        assert_array_equal(generate_uniform_timestamps(7.0, 7.0), [7])


class TestInterpolation:
    """Tests for single-channel interpolation."""

    def test_midpoint(self):
        result = interpolate_to_uniform([0, 2], [10.0, 20.0], [1])

        assert result[0] == pytest.approx(15.0)

    def test_flat_extrapolation(self):
        src_t = np.arange(5, 16, dtype=float)
        src_v = np.linspace(3.0, 8.0, len(src_t))

        result = interpolate_to_uniform(src_t, src_v, [0, 100])

        assert result[0] == 3.0
        assert result[1] == 8.0

    def test_existing_points_reproduced_exactly(self):
        src_t = np.arange(0, 10, dtype=float)
        src_v = np.array([1.5, 2.25, -3.0, 4.0, 0.1, 7.7, 8.0, 9.9, 10.0, 0.3])

        result = interpolate_to_uniform(src_t, src_v, src_t)

        assert_array_equal(result, src_v)

    def test_one_sided_nan_uses_other_value(self):
        assert interpolate_to_uniform([0, 2], [np.nan, 20.0], [1])[0] == 20.0
        assert interpolate_to_uniform([0, 2], [10.0, np.nan], [1])[0] == 10.0

    def test_both_nan_gives_nan(self):
        result = interpolate_to_uniform([0, 2], [np.nan, np.nan], [1])

        assert np.isnan(result[0])

    def test_irregular_source(self):
        src_t = [0.0, 0.4, 2.0, 2.5]
        src_v = [0.0, 4.0, 20.0, 25.0]

        result = interpolate_to_uniform(src_t, src_v, [0, 1, 2, 3])

        assert_allclose(result, [0.0, 10.0, 20.0, 25.0])

    def test_duplicate_source_timestamps(self):
        result = interpolate_to_uniform([0, 1, 1, 2], [0.0, 5.0, 7.0, 9.0], [0.5, 1, 1.5])

        assert_allclose(result, [2.5, 7.0, 8.0])

    def test_non_finite_source_timestamps_ignored(self):
        result = interpolate_to_uniform([0, np.nan, 2, 4], [0.0, 99.0, 20.0, 40.0], [1, 3])

        assert_allclose(result, [10.0, 30.0])

    def test_nan_target_gives_nan(self):
        result = interpolate_to_uniform([0, 2], [10.0, 20.0], [np.nan, 1])

        assert np.isnan(result[0])
        assert result[1] == pytest.approx(15.0)

    def test_length_mismatch(self):
        with pytest.raises(ValueError, match="same length"):
            interpolate_to_uniform([0, 1, 2], [1.0, 2.0], [0, 1])

    def test_empty_source(self):
        assert len(interpolate_to_uniform([], [], [0, 1])) == 0


class TestInterpolateAll:
    """Tests for multi-channel interpolation."""

    def test_mismatched_arrays_pass_through(self):
        uniform, result = interpolate_all(
            [0.0, 0.5, 2.0],
            {"speed": [0.0, 5.0, 20.0], "laps": [1.0], "label": "ride", "temp": None},
        )

        assert_array_equal(uniform, [0, 1, 2])
        assert_allclose(result["speed"], [0.0, 10.0, 20.0])
        assert result["laps"] == [1.0]
        assert result["label"] == "ride"
        assert result["temp"] is None

    def test_grid_from_finite_timestamps(self):
        uniform, result = interpolate_all(
            [np.nan, 1.2, 2.0, 3.5, np.nan],
            {"speed": [50.0, 1.0, 2.0, 5.0, 50.0]},
        )

        assert_array_equal(uniform, [1, 2, 3, 4])
        assert_allclose(result["speed"], [1.0, 2.0, 4.0, 5.0])

    def test_no_finite_timestamps_rejected(self):
        with pytest.raises(ValueError, match="no finite values"):
            interpolate_all([np.nan, np.nan], {"speed": [1.0, 2.0]})

    def test_empty_timestamps_rejected(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            interpolate_all([], {"speed": []})


class TestResampleRecord:
    """Tests for record-level resampling."""

    def test_builds_new_record_on_grid(self):
        record = _record([0.0, 0.4, 2.0, 2.5, 4.2])

        resampled = resample_record(record)

        assert resampled is not record
        assert_array_equal(resampled.timestamps, [0, 1, 2, 3, 4, 5])
        assert resampled.data_point_count == 6
        assert len(resampled.velocity) == 6
        # Source left untouched
        assert record.data_point_count == 5

    def test_idempotent_on_uniform_series(self):
        record = _record(
            np.arange(10, 20, dtype=float),
            temperature=np.linspace(15.0, 16.0, 10),
            lap_number=np.repeat([1.0, 2.0], 5),
        )

        resampled = resample_record(record)

        for info, values in record.channels():
            assert_array_equal(getattr(resampled, info.field), values)

    def test_absent_optionals_stay_absent(self):
        record = _record([0.0, 1.3, 2.1, 3.9])

        resampled = resample_record(record)

        assert resampled.temperature is None
        assert resampled.cda_reference is None
        assert not resampled.has_environmental_data

    def test_blank_first_timestamp(self):
        record = _record([np.nan, 1.0, 2.5])

        resampled = resample_record(record)

        assert_array_equal(resampled.timestamps, [1, 2, 3])
        assert_allclose(resampled.velocity, [2.0, 2.0 + 2.0 / 1.5, 4.0])

    def test_flags_recomputed_after_resampling(self):
        # The only valid CdA sample sits between two grid points next to NaN
        cda = np.array([np.nan, 0.25, np.nan, np.nan])
        record = _record([0.0, 0.5, 2.0, 3.0], cda_reference=cda)

        resampled = resample_record(record)

        assert record.has_cda_reference
        assert resampled.has_cda_reference
        assert resampled.cda_reference[1] == 0.25
