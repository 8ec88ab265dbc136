# ============================================================
# perf_core.py — P2002JF Performance Core API (v1.0.0)
# ============================================================
# What this provides:
#   - Typed in / typed out entry points:
#       compute_takeoff_or_landing(inputs, operation, debug=False)
#       compute_takeoff(inputs, debug=False) / compute_landing(inputs, debug=False)
#       compute_rate_of_climb(inputs, debug=False)
#       compute_cruise(inputs, debug=False)
#   - Dict-in / dict-out facade for callers holding loose form data:
#       run_calculation(kind, payload, debug=False)
#   - Distances are table values after wind/surface/slope corrections; the
#     uncorrected table values are returned alongside for transparency.
#   - Rate of climb is never corrected.
#   - Out-of-range numbers are clamped inside the lookups, not rejected.
# ============================================================

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Mapping, Optional

from atmosphere import (
    density_altitude_ft,
    density_ratio,
    isa_condition,
    kias_to_ktas,
    ktas_to_kias,
    pressure_altitude_ft,
)
from corrections import SURFACES, apply_corrections, get_correction_factors
from debug_trace import DebugTrace
from performance_tables import (
    GROUND_ROLL,
    OPERATIONS,
    OVER_50FT,
    lookup_cruise_by_airspeed,
    lookup_cruise_by_rpm,
    lookup_distance,
    lookup_rate_of_climb,
)
from wind import WindComponents, wind_components

__version__ = "v1.0.0"

logger = logging.getLogger(__name__)

# Documented input bounds. The core never rejects on these; out_of_range_fields() reports them.
INPUT_LIMITS: Dict[str, tuple] = {
    "weight_kg": (380.0, 600.0),
    "wind_direction_deg": (0.0, 360.0),
    "wind_speed_kt": (0.0, 100.0),
    "runway_slope_pct": (-15.0, 15.0),
    "oat_c": (-30.0, 60.0),
    "elevation_ft": (-500.0, 15000.0),
    "qnh_hpa": (700.0, 1200.0),
    "runway_heading_deg": (0.0, 360.0),
}

CRUISE_MODES = ("kias", "ktas", "rpm")


# ---------------------------
# Errors
# ---------------------------
class PerformanceError(Exception):
    """Base class for errors raised by the performance core."""


class ValidationError(PerformanceError, ValueError):
    """Inputs cannot be turned into a calculation (unknown mode, surface, operation...)."""


class MissingFieldError(ValidationError):
    def __init__(self, field_name: str, mode: Optional[str] = None):
        self.field = field_name
        self.mode = mode
        msg = f"'{field_name}' is required"
        if mode:
            msg += f" when input mode is {mode.upper()}"
        super().__init__(msg)


# ---------------------------
# Helpers
# ---------------------------
def _ensure_float(x: Any, default: float = 0.0) -> float:
    try:
        v = float(x)
        if math.isfinite(v):
            return v
    except (TypeError, ValueError):
        pass
    return float(default)


def _required_float(d: Mapping[str, Any], key: str, aliases: tuple = ()) -> float:
    for k in (key,) + aliases:
        if d.get(k) is not None:
            try:
                return float(d[k])
            except (TypeError, ValueError):
                raise ValidationError(f"'{key}' must be a number, got {d[k]!r}") from None
    raise MissingFieldError(key)


def _optional_float(d: Mapping[str, Any], key: str, aliases: tuple = ()) -> Optional[float]:
    for k in (key,) + aliases:
        if d.get(k) is not None:
            try:
                return float(d[k])
            except (TypeError, ValueError):
                raise ValidationError(f"'{key}' must be a number, got {d[k]!r}") from None
    return None


def round_half_up(x: float, ndigits: int = 0) -> float:
    """Round like a flight-manual table (0.5 always rounds up), not banker's rounding."""
    scale = 10.0 ** ndigits
    return math.floor(float(x) * scale + 0.5) / scale


def _normalize_operation(operation: str) -> str:
    op = str(operation).lower().strip()
    if op not in OPERATIONS:
        raise ValidationError(f"Unknown operation type: {operation!r} (expected one of {OPERATIONS})")
    return op


# ---------------------------
# Inputs
# ---------------------------
@dataclass(frozen=True)
class CalculationInputs:
    weight_kg: float
    oat_c: float
    elevation_ft: float
    qnh_hpa: float = 1013.25
    runway_surface: str = "grass"
    wind_direction_deg: float = 0.0
    wind_speed_kt: float = 0.0
    runway_slope_pct: float = 0.0
    runway_heading_deg: float = 0.0

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "CalculationInputs":
        return cls(
            weight_kg=_required_float(d, "weight_kg", ("weight",)),
            oat_c=_required_float(d, "oat_c", ("temperature",)),
            elevation_ft=_required_float(d, "elevation_ft", ("runway_elevation", "elevation")),
            qnh_hpa=_ensure_float(d.get("qnh_hpa", d.get("qnh")), 1013.25),
            runway_surface=str(d.get("runway_surface") or "grass").lower().strip(),
            wind_direction_deg=_ensure_float(d.get("wind_direction_deg", d.get("wind_direction")), 0.0),
            wind_speed_kt=_ensure_float(d.get("wind_speed_kt", d.get("wind_speed")), 0.0),
            runway_slope_pct=_ensure_float(d.get("runway_slope_pct", d.get("runway_slope")), 0.0),
            runway_heading_deg=_ensure_float(d.get("runway_heading_deg", d.get("runway_direction")), 0.0),
        )


@dataclass(frozen=True)
class ClimbInputs:
    weight_kg: float
    oat_c: float
    elevation_ft: float
    qnh_hpa: float = 1013.25

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ClimbInputs":
        return cls(
            weight_kg=_required_float(d, "weight_kg", ("weight",)),
            oat_c=_required_float(d, "oat_c", ("temperature",)),
            elevation_ft=_required_float(d, "elevation_ft", ("elevation",)),
            qnh_hpa=_ensure_float(d.get("qnh_hpa", d.get("qnh")), 1013.25),
        )


@dataclass(frozen=True)
class CruiseInputs:
    oat_c: float
    elevation_ft: float
    qnh_hpa: float = 1013.25
    input_mode: str = "ktas"
    kias: Optional[float] = None
    ktas: Optional[float] = None
    rpm: Optional[float] = None

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "CruiseInputs":
        return cls(
            oat_c=_required_float(d, "oat_c", ("temperature",)),
            elevation_ft=_required_float(d, "elevation_ft", ("elevation",)),
            qnh_hpa=_ensure_float(d.get("qnh_hpa", d.get("qnh")), 1013.25),
            input_mode=str(d.get("input_mode") or "ktas").lower().strip(),
            kias=_optional_float(d, "kias"),
            ktas=_optional_float(d, "ktas"),
            rpm=_optional_float(d, "rpm"),
        )


def out_of_range_fields(inputs: Any) -> List[str]:
    """Names of fields outside INPUT_LIMITS (for callers that validate before calling)."""
    bad = []
    for f in fields(inputs):
        if f.name in INPUT_LIMITS:
            value = getattr(inputs, f.name)
            lo, hi = INPUT_LIMITS[f.name]
            if value is None or not (lo <= value <= hi):
                bad.append(f.name)
    return bad


# ---------------------------
# Results
# ---------------------------
@dataclass
class TakeoffLandingResult:
    operation: str
    pressure_altitude_ft: float
    wind: WindComponents
    ground_roll_m: int
    over_50ft_m: int
    base_ground_roll_m: int
    base_over_50ft_m: int
    debug: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ClimbResult:
    pressure_altitude_ft: float
    rate_of_climb_fpm: int
    base_rate_of_climb_fpm: int
    climb_speed_kias: float
    debug: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CruiseResult:
    pressure_altitude_ft: float
    density_altitude_ft: float
    ktas: float
    kias: float
    fuel_flow_lph: float
    power_percent: float
    rpm: Optional[float]
    table_ktas: float
    isa_condition: str
    debug: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================
#   TAKEOFF / LANDING
# ============================================================
def compute_takeoff_or_landing(inputs: CalculationInputs, operation: str = "takeoff",
                               debug: bool = False) -> TakeoffLandingResult:
    op = _normalize_operation(operation)
    if str(inputs.runway_surface).lower().strip() not in SURFACES:
        raise ValidationError(f"Unknown runway surface: {inputs.runway_surface!r} (expected one of {SURFACES})")

    pa_ft = pressure_altitude_ft(inputs.elevation_ft, inputs.qnh_hpa)
    wind = wind_components(inputs.runway_heading_deg, inputs.wind_direction_deg, inputs.wind_speed_kt)

    trace_gr = DebugTrace(f"{op} {GROUND_ROLL}") if debug else None
    trace_50 = DebugTrace(f"{op} {OVER_50FT}") if debug else None

    base_gr = lookup_distance(inputs.weight_kg, pa_ft, inputs.oat_c, GROUND_ROLL, op, trace_gr)
    base_50 = lookup_distance(inputs.weight_kg, pa_ft, inputs.oat_c, OVER_50FT, op, trace_50)

    factors = get_correction_factors(op)
    rec_gr, rec_50 = apply_corrections(base_gr, base_50, inputs.runway_surface,
                                       inputs.runway_slope_pct, wind, factors)

    result = TakeoffLandingResult(
        operation=op,
        pressure_altitude_ft=pa_ft,
        wind=wind,
        ground_roll_m=int(round_half_up(rec_gr.final_m)),
        over_50ft_m=int(round_half_up(rec_50.final_m)),
        base_ground_roll_m=int(round_half_up(base_gr)),
        base_over_50ft_m=int(round_half_up(base_50)),
    )

    if trace_gr is not None and trace_50 is not None:
        for trace, rec in ((trace_gr, rec_gr), (trace_50, rec_50)):
            trace.record("corrections", rec.to_dict())
            trace.extend(rec.describe())
        result.debug = {"ground_roll": trace_gr.to_dict(), "over_50ft": trace_50.to_dict()}

    logger.debug("%s: PA=%.0fft GR %d->%d m, 50ft %d->%d m", op, pa_ft,
                 result.base_ground_roll_m, result.ground_roll_m,
                 result.base_over_50ft_m, result.over_50ft_m)
    return result


def compute_takeoff(inputs: CalculationInputs, debug: bool = False) -> TakeoffLandingResult:
    return compute_takeoff_or_landing(inputs, "takeoff", debug)


def compute_landing(inputs: CalculationInputs, debug: bool = False) -> TakeoffLandingResult:
    return compute_takeoff_or_landing(inputs, "landing", debug)


# ============================================================
#   RATE OF CLIMB (no corrections)
# ============================================================
def compute_rate_of_climb(inputs: ClimbInputs, debug: bool = False) -> ClimbResult:
    pa_ft = pressure_altitude_ft(inputs.elevation_ft, inputs.qnh_hpa)
    trace = DebugTrace("rate_of_climb") if debug else None

    point = lookup_rate_of_climb(inputs.weight_kg, pa_ft, inputs.oat_c, trace)
    rate = int(round_half_up(point.rate_of_climb_fpm))

    result = ClimbResult(
        pressure_altitude_ft=pa_ft,
        rate_of_climb_fpm=rate,
        base_rate_of_climb_fpm=rate,
        climb_speed_kias=point.vy_kias,
    )
    if trace is not None:
        result.debug = trace.to_dict()
    logger.debug("climb: PA=%.0fft ROC=%d ft/min Vy=%g kt", pa_ft, rate, point.vy_kias)
    return result


# ============================================================
#   CRUISE (nearest table row by KTAS or RPM)
# ============================================================
def compute_cruise(inputs: CruiseInputs, debug: bool = False) -> CruiseResult:
    mode = str(inputs.input_mode).lower().strip()
    if mode not in CRUISE_MODES:
        raise ValidationError(f"Unknown cruise input mode: {inputs.input_mode!r} (expected one of {CRUISE_MODES})")
    if getattr(inputs, mode) is None:
        raise MissingFieldError(mode, mode)

    pa_ft = pressure_altitude_ft(inputs.elevation_ft, inputs.qnh_hpa)
    da_ft = density_altitude_ft(pa_ft, inputs.oat_c)
    sigma = density_ratio(pa_ft, inputs.oat_c)
    trace = DebugTrace("cruise") if debug else None
    conversion: List[str] = []

    if mode == "rpm":
        point = lookup_cruise_by_rpm(pa_ft, inputs.oat_c, inputs.rpm, trace)
        ktas = point.ktas
        kias = ktas_to_kias(ktas, pa_ft, inputs.oat_c)
        conversion.append(f"KTAS to KIAS conversion: {ktas:g}kt * sqrt({sigma:.4f}) = {kias:.1f}kt")
    elif mode == "kias":
        kias = float(inputs.kias)
        ktas = kias_to_ktas(kias, pa_ft, inputs.oat_c)
        conversion.append(f"KIAS to KTAS conversion: {kias:g}kt / sqrt({sigma:.4f}) = {ktas:.1f}kt")
        point = lookup_cruise_by_airspeed(pa_ft, inputs.oat_c, ktas, trace)
    else:
        ktas = float(inputs.ktas)
        kias = ktas_to_kias(ktas, pa_ft, inputs.oat_c)
        conversion.append(f"KTAS to KIAS conversion: {ktas:g}kt * sqrt({sigma:.4f}) = {kias:.1f}kt")
        point = lookup_cruise_by_airspeed(pa_ft, inputs.oat_c, ktas, trace)

    band = isa_condition(pa_ft, inputs.oat_c)
    result = CruiseResult(
        pressure_altitude_ft=pa_ft,
        density_altitude_ft=da_ft,
        ktas=round_half_up(ktas, 1),
        kias=round_half_up(kias, 1),
        fuel_flow_lph=point.fuel_flow_lph,
        power_percent=point.power_percent,
        rpm=point.rpm,
        table_ktas=point.ktas,
        isa_condition=band,
    )

    if trace is not None:
        trace.record("pressure_altitude_ft", pa_ft)
        trace.record("density_altitude_ft", da_ft)
        trace.record("density_ratio", sigma)
        trace.step(f"Density altitude: {da_ft:.0f}ft")
        trace.step(f"Density ratio: {sigma:.4f}")
        trace.extend(conversion)
        result.debug = trace.to_dict()

    logger.debug("cruise[%s]: PA=%.0fft %s KTAS=%.1f RPM=%s FF=%s", mode, pa_ft, band,
                 result.ktas, point.rpm, point.fuel_flow_lph)
    return result


# ============================================================
#   Dict facade
# ============================================================
CALCULATIONS = ("takeoff", "landing", "climb", "cruise")


def run_calculation(kind: str, payload: Mapping[str, Any], debug: bool = False) -> Dict[str, Any]:
    """
    Build the typed inputs for `kind` from a loose dict, run it, return a plain dict.
    kind: takeoff | landing | climb | cruise
    """
    k = str(kind).lower().strip()
    if k in ("takeoff", "landing"):
        result = compute_takeoff_or_landing(CalculationInputs.from_dict(payload), k, debug)
    elif k == "climb":
        result = compute_rate_of_climb(ClimbInputs.from_dict(payload), debug)
    elif k == "cruise":
        result = compute_cruise(CruiseInputs.from_dict(payload), debug)
    else:
        raise ValidationError(f"Unknown calculation: {kind!r} (expected one of {CALCULATIONS})")
    out = result.to_dict()
    out["version"] = __version__
    return out
