"""Registered locations and their owners."""

from dataclasses import dataclass

from frostwatch.models.common import LocationId, UserId
from frostwatch.models.geo import Coordinate


@dataclass(frozen=True)
class User:
    id: UserId
    chat_id: str
    username: str = ""


@dataclass(frozen=True)
class Location:
    id: LocationId
    owner_id: UserId
    name: str
    coordinate: Coordinate


@dataclass(frozen=True)
class Cluster:
    key: tuple[float, float]
    representative: Location
    members: tuple[Location, ...]
