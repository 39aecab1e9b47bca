"""
Spatial clustering of flagged pixels.

This module groups flagged pixels into single-link clusters: two points share
a cluster when a chain of pairwise links, each no longer than ``radius``,
connects them. Expansion is transitive, so elongated hot regions form one
cluster rather than being split at the seed's neighbourhood.

Classes:
    Cluster: One spatial group with centroid and bounding box
    SpatialClusterer: Radius-based single-link clustering

Example:
    >>> clusterer = SpatialClusterer(radius=10)
    >>> clusters = clusterer.cluster(points)
    >>> for c in clusters:
    ...     print(c.centroid, c.size, c.max_temperature)
"""

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Sequence, Set, Tuple

import numpy as np

from thermosentry.models.frame import Region, TemperaturePoint


@dataclass
class Cluster:
    """
    A spatial group of flagged pixels.

    Attributes:
        points: Member pixels in discovery order.
    """

    points: List[TemperaturePoint] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.points)

    @property
    def temperatures(self) -> List[float]:
        return [p.temperature for p in self.points]

    @property
    def centroid(self) -> Tuple[float, float]:
        """Mean x and mean y of the members."""
        n = len(self.points)
        return (
            sum(p.x for p in self.points) / n,
            sum(p.y for p in self.points) / n,
        )

    @property
    def bounds(self) -> Region:
        """Bounding rectangle of the members."""
        xs = [p.x for p in self.points]
        ys = [p.y for p in self.points]
        return Region(x_min=min(xs), y_min=min(ys), x_max=max(xs), y_max=max(ys))

    @property
    def max_temperature(self) -> float:
        return max(self.temperatures)

    @property
    def min_temperature(self) -> float:
        return min(self.temperatures)

    @property
    def mean_temperature(self) -> float:
        return sum(self.temperatures) / len(self.points)


class SpatialClusterer:
    """
    Radius-based single-link clustering.

    Points are visited in input order. Each unvisited point seeds a new
    cluster, which then grows breadth-first: every newly absorbed member pulls
    in all unvisited points within ``radius`` of itself. Clusters are returned
    in discovery order.

    Attributes:
        radius: Maximum link distance in pixels.
    """

    def __init__(self, radius: float = 10.0) -> None:
        if radius < 0:
            raise ValueError(f"radius must be >= 0, got {radius}")
        self.radius = radius

    def cluster(self, points: Sequence[TemperaturePoint]) -> List[Cluster]:
        """
        Partition points into clusters.

        Points are bucketed on a grid of cells with side ``radius / sqrt(2)``.
        Any two points in one cell are within ``radius`` of each other, so a
        cell joins a cluster as a whole, and expansion only tests the 5x5
        block of cells around each member cell.

        Args:
            points: Flagged pixels, in any order.

        Returns:
            List[Cluster]: Clusters in discovery order. Every input point
            belongs to exactly one cluster.
        """
        if not points:
            return []

        coords = np.array([(p.x, p.y) for p in points], dtype=float)
        radius_sq = self.radius * self.radius

        if self.radius > 0:
            cell_size = self.radius / math.sqrt(2)
            cell_of = [
                (math.floor(x / cell_size), math.floor(y / cell_size)) for x, y in coords
            ]
            reach = 2
        else:
            cell_of = [(float(x), float(y)) for x, y in coords]
            reach = 0

        buckets: Dict[Tuple[float, float], List[int]] = {}
        for index, cell in enumerate(cell_of):
            buckets.setdefault(cell, []).append(index)
        cell_coords = {cell: coords[indices] for cell, indices in buckets.items()}

        absorbed: Set[Tuple[float, float]] = set()
        clusters: List[Cluster] = []

        for seed in range(len(points)):
            seed_cell = cell_of[seed]
            if seed_cell in absorbed:
                continue

            absorbed.add(seed_cell)
            member_cells = [seed_cell]
            frontier = deque([seed_cell])

            while frontier:
                current = frontier.popleft()
                for neighbour in _neighbourhood(current, reach):
                    if neighbour in absorbed or neighbour not in buckets:
                        continue
                    if _linked(cell_coords[current], cell_coords[neighbour], radius_sq):
                        absorbed.add(neighbour)
                        member_cells.append(neighbour)
                        frontier.append(neighbour)

            members = sorted(i for cell in member_cells for i in buckets[cell])
            clusters.append(Cluster(points=[points[i] for i in members]))

        return clusters


def _neighbourhood(cell: Tuple[float, float], reach: int) -> Iterator[Tuple[float, float]]:
    cx, cy = cell
    for dx in range(-reach, reach + 1):
        for dy in range(-reach, reach + 1):
            if dx or dy:
                yield (cx + dx, cy + dy)


def _linked(a: np.ndarray, b: np.ndarray, radius_sq: float) -> bool:
    """True if any point of ``a`` lies within the radius of any point of ``b``."""
    deltas = a[:, None, :] - b[None, :, :]
    return bool(((deltas ** 2).sum(axis=2) <= radius_sq).any())


def single_cluster(points: Sequence[TemperaturePoint]) -> List[Cluster]:
    """Treat all points as one cluster (spatial filtering disabled)."""
    if not points:
        return []
    return [Cluster(points=list(points))]
