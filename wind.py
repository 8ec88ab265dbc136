# wind.py — v1.0.0
from __future__ import annotations
import math
from dataclasses import dataclass


@dataclass(frozen=True)
class WindComponents:
    headwind_kt: float
    tailwind_kt: float
    crosswind_kt: float


def relative_wind_angle_deg(runway_heading_deg: float, wind_direction_deg: float) -> float:
    """Wind direction relative to the runway, normalised into (-180, 180]."""
    angle = float(wind_direction_deg) - float(runway_heading_deg)
    while angle > 180.0:
        angle -= 360.0
    while angle <= -180.0:
        angle += 360.0
    return angle


def wind_components(runway_heading_deg: float, wind_direction_deg: float, wind_speed_kt: float) -> WindComponents:
    """
    Split a reported wind into head/tail/cross components for a runway.
    At most one of headwind/tailwind is non-zero; crosswind is unsigned.
    """
    angle_rad = math.radians(relative_wind_angle_deg(runway_heading_deg, wind_direction_deg))
    along = float(wind_speed_kt) * math.cos(angle_rad)
    return WindComponents(
        headwind_kt=max(0.0, along),
        tailwind_kt=max(0.0, -along),
        crosswind_kt=abs(float(wind_speed_kt) * math.sin(angle_rad)),
    )
