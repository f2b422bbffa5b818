"""
Tests for great-circle distance utilities.
"""

import numpy as np
from numpy.testing import assert_allclose

from aero_ingest.utils.coordinates import cumulative_distance, haversine_distance


class TestHaversineDistance:
    """Tests for haversine distance calculation."""

    def test_same_point_zero_distance(self):
        """Same point should have zero distance."""
        dist = haversine_distance(43.38, -1.65, 43.38, -1.65)
        assert dist == 0.0

    def test_one_degree_latitude(self):
        """One degree of latitude should be ~111km."""
        dist = haversine_distance(43.0, -1.0, 44.0, -1.0)
        assert_allclose(dist, 111000, rtol=0.01)

    def test_symmetric(self):
        """Distance should be symmetric."""
        d1 = haversine_distance(43.0, -1.0, 44.0, -2.0)
        d2 = haversine_distance(44.0, -2.0, 43.0, -1.0)
        assert_allclose(d1, d2, rtol=1e-10)

    def test_vectorized(self):
        """Arrays of points give one distance per pair."""
        lat = np.array([43.0, 43.001, 43.002])
        lon = np.array([-1.0, -1.0, -1.0])

        dist = haversine_distance(lat[:-1], lon[:-1], lat[1:], lon[1:])

        assert dist.shape == (2,)
        assert_allclose(dist, 111.2, rtol=0.01)


class TestCumulativeDistance:
    """Tests for running distance along a ride."""

    def test_starts_at_zero_and_accumulates(self):
        lat = np.array([43.0, 43.001, 43.002, 43.003])
        lon = np.full(4, -1.0)

        dist = cumulative_distance(lat, lon)

        assert dist[0] == 0.0
        assert np.all(np.diff(dist) > 0)
        assert_allclose(dist[-1], 3 * 111.2, rtol=0.01)

    def test_gps_dropout_holds_distance(self):
        lat = np.array([43.0, np.nan, 43.002])
        lon = np.array([-1.0, -1.0, -1.0])

        dist = cumulative_distance(lat, lon)

        assert not np.any(np.isnan(dist))
        assert dist.tolist() == [0.0, 0.0, 0.0]

    def test_empty(self):
        assert len(cumulative_distance(np.array([]), np.array([]))) == 0
