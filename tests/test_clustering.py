"""Tests for spatial clustering of flagged pixels."""

from __future__ import annotations

import time

import numpy as np
import pytest

from thermosentry.detection.clustering import Cluster, SpatialClusterer, single_cluster
from thermosentry.models.frame import TemperaturePoint


def point(x: int, y: int, temperature: float = 50.0) -> TemperaturePoint:
    return TemperaturePoint(x=x, y=y, temperature=temperature)


def pairwise_clusters(points, radius):
    """Reference partition: breadth-first search comparing every pair."""
    seen = [False] * len(points)
    result = []
    for seed in range(len(points)):
        if seen[seed]:
            continue
        seen[seed] = True
        members, frontier = [seed], [seed]
        while frontier:
            current = frontier.pop()
            for other in range(len(points)):
                dx = points[other].x - points[current].x
                dy = points[other].y - points[current].y
                if not seen[other] and dx * dx + dy * dy <= radius * radius:
                    seen[other] = True
                    members.append(other)
                    frontier.append(other)
        result.append(sorted(id(points[i]) for i in members))
    return result


class TestSpatialClusterer:
    def test_empty_input(self):
        assert SpatialClusterer(radius=10).cluster([]) == []

    def test_separates_distant_groups(self):
        """Groups further apart than the radius become separate clusters."""
        points = [point(0, 0), point(1, 0), point(50, 50), point(51, 50)]
        clusters = SpatialClusterer(radius=5).cluster(points)

        assert len(clusters) == 2
        assert clusters[0].size == 2
        assert clusters[1].size == 2

    def test_chain_is_transitive(self):
        """A chain of links each within the radius forms one cluster."""
        points = [point(x, 0) for x in range(0, 40, 4)]
        clusters = SpatialClusterer(radius=5).cluster(points)

        assert len(clusters) == 1
        assert clusters[0].size == len(points)

    def test_link_distance_is_inclusive(self):
        points = [point(0, 0), point(3, 4)]
        assert len(SpatialClusterer(radius=5).cluster(points)) == 1
        assert len(SpatialClusterer(radius=4.9).cluster(points)) == 2

    def test_every_point_assigned_once(self):
        points = [point(x, y) for x in range(0, 30, 3) for y in (0, 20)]
        clusters = SpatialClusterer(radius=4).cluster(points)

        members = [p for c in clusters for p in c.points]
        assert len(members) == len(points)
        assert set((p.x, p.y) for p in members) == set((p.x, p.y) for p in points)

    def test_discovery_order(self):
        """Clusters come back in the order their first point appears."""
        points = [point(50, 50), point(0, 0), point(51, 50)]
        clusters = SpatialClusterer(radius=5).cluster(points)

        assert clusters[0].points[0].x == 50
        assert clusters[1].points[0].x == 0

    def test_zero_radius_links_only_coincident_points(self):
        points = [point(2, 2), point(3, 2), point(2, 2, 60.0)]
        clusters = SpatialClusterer(radius=0).cluster(points)

        assert [c.size for c in clusters] == [2, 1]

    @pytest.mark.parametrize("radius", [1.0, 2.5, 4.0, 7.5])
    def test_matches_pairwise_linking(self, radius):
        """Grid bucketing gives the same partition as checking every pair."""
        rng = np.random.default_rng(7)
        points = [point(int(x), int(y)) for x, y in rng.integers(0, 60, size=(150, 2))]

        clusters = SpatialClusterer(radius=radius).cluster(points)

        assert [sorted(id(p) for p in c.points) for c in clusters] == pairwise_clusters(points, radius)

    def test_dense_frame_is_one_cluster(self):
        points = [point(x, y) for y in range(120) for x in range(160)]

        started = time.perf_counter()
        clusters = SpatialClusterer(radius=10).cluster(points)
        elapsed = time.perf_counter() - started

        assert len(clusters) == 1
        assert clusters[0].points == points
        assert elapsed < 1.0

    def test_negative_radius_rejected(self):
        with pytest.raises(ValueError):
            SpatialClusterer(radius=-1)


class TestCluster:
    def test_summary_properties(self):
        cluster = Cluster(points=[point(2, 4, 30.0), point(4, 6, 50.0), point(6, 8, 40.0)])

        assert cluster.centroid == (4.0, 6.0)
        assert cluster.max_temperature == 50.0
        assert cluster.min_temperature == 30.0
        assert cluster.mean_temperature == pytest.approx(40.0)

        bounds = cluster.bounds
        assert (bounds.x_min, bounds.y_min, bounds.x_max, bounds.y_max) == (2, 4, 6, 8)

    def test_single_cluster_keeps_everything(self):
        points = [point(0, 0), point(100, 100)]
        clusters = single_cluster(points)

        assert len(clusters) == 1
        assert clusters[0].size == 2
        assert single_cluster([]) == []

    def test_bounds_corners_clockwise(self):
        cluster = Cluster(points=[point(2, 4), point(6, 8)])
        assert cluster.bounds.corners == [(2, 4), (6, 4), (6, 8), (2, 8)]
