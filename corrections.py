# corrections.py — v1.0.0
# Flight-manual corrections applied to table distances, in this order:
#   1) wind (per-knot, metres)   2) paved surface (%)   3) runway slope (% per %)
#   4) clamp to >= 0
# Ground roll and over-50ft are corrected independently with the same factors.

from __future__ import annotations
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Tuple

from wind import WindComponents

logger = logging.getLogger(__name__)

# ---- Correction factors (flight manual, fixed per operation type) ----
CORRECTION_CFG: Dict[str, Dict[str, float]] = {
    "takeoff": {
        "headwind_m_per_kt": -2.5,
        "tailwind_m_per_kt": 10.0,
        "paved_runway_percent": -6.0,
        "slope_percent_per_percent": 5.0,   # uphill lengthens the run
    },
    "landing": {
        "headwind_m_per_kt": -5.0,
        "tailwind_m_per_kt": 11.0,
        "paved_runway_percent": -2.0,
        "slope_percent_per_percent": -2.5,  # uphill shortens the run
    },
}

SURFACES = ("grass", "concrete", "asphalt")
PAVED_SURFACES = ("concrete", "asphalt")


@dataclass(frozen=True)
class CorrectionFactors:
    headwind_m_per_kt: float
    tailwind_m_per_kt: float
    paved_runway_percent: float
    slope_percent_per_percent: float


def get_correction_factors(operation: str) -> CorrectionFactors:
    op = str(operation).lower().strip()
    if op not in CORRECTION_CFG:
        raise ValueError(f"Unknown operation type: {operation!r}")
    return CorrectionFactors(**CORRECTION_CFG[op])


def normalize_surface(surface: str) -> str:
    s = str(surface).lower().strip()
    if s not in SURFACES:
        raise ValueError(f"Unknown runway surface: {surface!r} (expected one of {SURFACES})")
    return s


@dataclass
class WindCorrection:
    type: str = "none"          # headwind | tailwind | none
    value_kt: float = 0.0
    correction_m: float = 0.0


@dataclass
class SurfaceCorrection:
    type: str = "grass"
    correction_percent: float = 0.0
    correction_m: float = 0.0


@dataclass
class SlopeCorrection:
    value_pct: float = 0.0
    correction_percent: float = 0.0
    correction_m: float = 0.0


@dataclass
class CorrectionRecord:
    """What each step contributed to one segment, plus the running value after it."""
    base_m: float
    wind: WindCorrection = field(default_factory=WindCorrection)
    surface: SurfaceCorrection = field(default_factory=SurfaceCorrection)
    slope: SlopeCorrection = field(default_factory=SlopeCorrection)
    running_m: List[Tuple[str, float, float]] = field(default_factory=list)  # (step, before, after)
    final_m: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["running_m"] = [{"step": s, "before": b, "after": a} for s, b, a in self.running_m]
        return out

    def describe(self) -> List[str]:
        lines = [f"Base value: {self.base_m:.1f}m"]
        w = self.wind
        if w.type != "none":
            sign = "+" if w.correction_m > 0 else ""
            lines.append(f"Wind correction ({w.type} {w.value_kt:.1f}kt): {sign}{w.correction_m:.1f}m")
        else:
            lines.append("Wind correction: none")
        s = self.surface
        if s.correction_percent != 0:
            sign = "-" if s.correction_percent < 0 else "+"
            lines.append(f"Surface correction ({s.type}): {s.correction_percent:g}% ({sign}{abs(s.correction_m):.1f}m)")
        else:
            lines.append(f"Surface correction ({s.type}): none")
        sl = self.slope
        if sl.value_pct != 0:
            direction = "uphill" if sl.value_pct > 0 else "downhill"
            pct_sign = "+" if sl.correction_percent > 0 else ""
            m_sign = "+" if sl.correction_m > 0 else ""
            lines.append(f"Slope correction ({direction} {abs(sl.value_pct):g}%): "
                         f"{pct_sign}{sl.correction_percent:g}% ({m_sign}{sl.correction_m:.1f}m)")
        else:
            lines.append("Slope correction: none")
        lines.append(f"Final value: {self.final_m:.1f}m")
        return lines


def correct_distance(base_m: float, surface: str, slope_pct: float,
                     wind: WindComponents, factors: CorrectionFactors) -> CorrectionRecord:
    base_m = float(base_m)
    rec = CorrectionRecord(base_m=base_m)
    value = base_m

    # 1) Wind: at most one of headwind/tailwind is non-zero
    if wind.headwind_kt > 0:
        delta = wind.headwind_kt * factors.headwind_m_per_kt
        rec.wind = WindCorrection("headwind", wind.headwind_kt, delta)
    elif wind.tailwind_kt > 0:
        delta = wind.tailwind_kt * factors.tailwind_m_per_kt
        rec.wind = WindCorrection("tailwind", wind.tailwind_kt, delta)
    else:
        delta = 0.0
    rec.running_m.append(("wind", value, value + delta))
    value += delta

    # 2) Surface: grass is the table baseline
    surf = normalize_surface(surface)
    rec.surface = SurfaceCorrection(type=surf)
    if surf in PAVED_SURFACES:
        pct = factors.paved_runway_percent
        rec.surface = SurfaceCorrection(surf, pct, base_m * abs(pct / 100.0))
        after = value * (1.0 + pct / 100.0)
    else:
        after = value
    rec.running_m.append(("surface", value, after))
    value = after

    # 3) Slope: always applied, slope 0 multiplies by 1
    slope_pct = float(slope_pct)
    pct = slope_pct * factors.slope_percent_per_percent
    mult = 1.0 + pct / 100.0
    rec.slope = SlopeCorrection(slope_pct, pct, base_m * (mult - 1.0))
    rec.running_m.append(("slope", value, value * mult))
    value *= mult

    # 4) Non-negative
    final = max(0.0, value)
    if final != value:
        logger.debug("Corrected distance %.1fm clamped to 0", value)
    rec.running_m.append(("clamp", value, final))
    rec.final_m = final
    return rec


def apply_corrections(base_ground_roll_m: float, base_over_50ft_m: float, surface: str, slope_pct: float,
                      wind: WindComponents, factors: CorrectionFactors) -> Tuple[CorrectionRecord, CorrectionRecord]:
    """Correct both segments; returns (ground_roll, over_50ft) records."""
    return (correct_distance(base_ground_roll_m, surface, slope_pct, wind, factors),
            correct_distance(base_over_50ft_m, surface, slope_pct, wind, factors))
