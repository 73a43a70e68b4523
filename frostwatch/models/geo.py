"""Geographic value types."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")

    def rounded(self, precision: int) -> tuple[float, float]:
        return (round(self.latitude, precision), round(self.longitude, precision))

    def __str__(self) -> str:
        return f"{self.latitude:.4f},{self.longitude:.4f}"
