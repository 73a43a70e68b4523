"""Greedy spatial grouping of locations so nearby points share one fetch."""

import logging
from collections.abc import Sequence

from frostwatch.geo import within_radius
from frostwatch.models.location import Cluster, Location

logger = logging.getLogger(__name__)


def group_locations(
    locations: Sequence[Location], radius_m: float, precision: int = 2
) -> list[Cluster]:
    """Partition locations into clusters around a representative.

    Each unvisited location in input order becomes a representative and
    collects every other unvisited location within radius_m of it. The result
    depends on input order; every location lands in exactly one cluster.
    """
    visited: set[int] = set()
    clusters: list[Cluster] = []

    for i, rep in enumerate(locations):
        if i in visited:
            continue
        visited.add(i)
        members = [rep]
        for j in range(i + 1, len(locations)):
            if j in visited:
                continue
            other = locations[j]
            if within_radius(rep.coordinate, other.coordinate, radius_m):
                visited.add(j)
                members.append(other)

        clusters.append(
            Cluster(
                key=rep.coordinate.rounded(precision),
                representative=rep,
                members=tuple(members),
            )
        )

    logger.debug("Grouped %d locations into %d clusters", len(locations), len(clusters))
    return clusters
