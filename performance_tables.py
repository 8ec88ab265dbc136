# performance_tables.py — v1.0.0
# Table-driven P2002JF performance: takeoff/landing distances, rate of climb, cruise.
# Provides:
#   - PerfGrid: immutable dense (weight x PA x temp) grid built from the long-format CSVs
#   - GridLookup: clamp -> exact-match / bracket per axis -> trilinear, with one-level
#     linear extrapolation above the heaviest tabulated weight (up to 600 kg)
#   - DistanceDeck / ClimbDeck / CruiseTable and module-level lookup_* helpers
#
# Notes:
# - Temperature axis is fixed (-25, 0, 15, 25, 50 degC); weight and PA axes come from the data.
# - Out-of-range inputs are clamped silently; a missing corner reads back as 0.
# - Cruise is a nearest-row selection, never interpolated between RPM settings.

from __future__ import annotations
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from atmosphere import isa_condition, isa_deviation_c, isa_temperature_c
from data_loaders import load_cruise_csv, load_distance_csv, load_rate_of_climb_csv
from debug_trace import DebugTrace
from interpolation import trilinear

logger = logging.getLogger(__name__)

TEMPERATURE_AXIS_C: Tuple[float, ...] = (-25.0, 0.0, 15.0, 25.0, 50.0)
MAX_EXTRAPOLATED_WEIGHT_KG = 600.0
DEFAULT_VY_KIAS = 66.0

GROUND_ROLL = "ground_roll"
OVER_50FT = "over_50ft"
SEGMENTS = (GROUND_ROLL, OVER_50FT)
OPERATIONS = ("takeoff", "landing")

MISSING_VALUE = 0.0


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def _fmt(x: float) -> str:
    # 550.0 -> "550", 1234.5 -> "1234.5"
    return f"{x:g}"


# ---------------------------
# Axis resolution
# ---------------------------
@dataclass(frozen=True)
class AxisBracket:
    lo: float
    hi: float
    lo_idx: int
    hi_idx: int
    exact: bool

    def as_dict(self) -> Dict[str, float]:
        return {"lo": self.lo, "hi": self.hi, "lo_idx": self.lo_idx, "hi_idx": self.hi_idx, "exact": self.exact}


def resolve_axis(axis: Sequence[float], x: float) -> AxisBracket:
    """
    Exact match collapses the axis to one index; otherwise the first adjacent
    pair with axis[i] <= x <= axis[i+1] wins (linear scan, axis sorted ascending).
    """
    for i, v in enumerate(axis):
        if v == x:
            return AxisBracket(float(v), float(v), i, i, True)
    lo_idx, hi_idx = 0, len(axis) - 1
    for i in range(len(axis) - 1):
        if axis[i] <= x <= axis[i + 1]:
            lo_idx, hi_idx = i, i + 1
            break
    return AxisBracket(float(axis[lo_idx]), float(axis[hi_idx]), lo_idx, hi_idx, False)


def interpolation_kind(wb: AxisBracket, pb: AxisBracket, tb: AxisBracket) -> str:
    moving = [name for name, b in (("Weight", wb), ("PA", pb), ("Temp", tb)) if not b.exact]
    if not moving:
        return "Exact match (no interpolation)"
    if len(moving) == 1:
        label = "Temperature" if moving[0] == "Temp" else moving[0]
        return f"{label} interpolation only"
    if len(moving) == 2:
        return f"Bilinear ({' + '.join(moving)})"
    return "Trilinear (Weight + PA + Temp)"


# ---------------------------
# Grid
# ---------------------------
@dataclass(frozen=True, eq=False)
class PerfGrid:
    """
    Dense (weight x pressure altitude x temperature) grid. Axes are sorted ascending;
    combinations absent from the source are NaN in `values`.
    """
    weights: Tuple[float, ...]
    pressure_alts: Tuple[float, ...]
    temperatures: Tuple[float, ...]
    values: np.ndarray

    def __post_init__(self) -> None:
        shape = (len(self.weights), len(self.pressure_alts), len(self.temperatures))
        if self.values.shape != shape:
            raise ValueError(f"Grid values shape {self.values.shape} does not match axes {shape}")
        for name in ("weights", "pressure_alts", "temperatures"):
            axis = getattr(self, name)
            if not axis:
                raise ValueError(f"Grid axis '{name}' is empty")
            if list(axis) != sorted(axis):
                raise ValueError(f"Grid axis '{name}' must be sorted ascending")
        self.values.setflags(write=False)

    @classmethod
    def from_frame(cls, df: pd.DataFrame, value_col: str,
                   temperatures: Sequence[float] = TEMPERATURE_AXIS_C) -> "PerfGrid":
        df = df.astype({"weight_kg": float, "pressure_alt_ft": float, "temp_c": float})
        weights = tuple(float(w) for w in sorted(df["weight_kg"].dropna().unique()))
        pas = tuple(float(p) for p in sorted(df["pressure_alt_ft"].dropna().unique()))
        temps = tuple(float(t) for t in temperatures)
        pivot = df.pivot_table(index=["weight_kg", "pressure_alt_ft"], columns="temp_c",
                               values=value_col, aggfunc="first")
        full_index = pd.MultiIndex.from_product([weights, pas], names=["weight_kg", "pressure_alt_ft"])
        pivot = pivot.reindex(index=full_index, columns=list(temps))
        values = pivot.to_numpy(dtype=float).reshape(len(weights), len(pas), len(temps)).copy()
        missing = int(np.isnan(values).sum())
        if missing:
            logger.warning("%s grid has %d missing cells; they read back as %s", value_col, missing, MISSING_VALUE)
        logger.debug("Built %s grid %s", value_col, values.shape)
        return cls(weights, pas, temps, values)

    def value(self, wi: int, pi: int, ti: int) -> Optional[float]:
        v = self.values[wi, pi, ti]
        return None if np.isnan(v) else float(v)


# ---------------------------
# Grid lookup engine
# ---------------------------
class GridLookup:
    """Clamp, resolve axes, gather corners, interpolate; shared by distance and climb decks."""

    def __init__(self, grid: PerfGrid, label: str = "value", unit: str = "",
                 max_extrapolated_weight: float = MAX_EXTRAPOLATED_WEIGHT_KG):
        self.grid = grid
        self.label = label
        self.unit = unit
        self.max_extrapolated_weight = float(max_extrapolated_weight)

    # ---------- Helpers ----------
    @property
    def min_weight(self) -> float:
        return self.grid.weights[0]

    @property
    def max_weight(self) -> float:
        return self.grid.weights[-1]

    def clamp_inputs(self, weight: float, pressure_alt: float, temperature: float) -> Tuple[float, float, float]:
        g = self.grid
        cw = clamp(float(weight), self.min_weight, self.max_extrapolated_weight)
        cpa = clamp(float(pressure_alt), g.pressure_alts[0], g.pressure_alts[-1])
        ct = clamp(float(temperature), g.temperatures[0], g.temperatures[-1])
        return cw, cpa, ct

    def needs_extrapolation(self, clamped_weight: float) -> bool:
        return len(self.grid.weights) >= 2 and clamped_weight > self.max_weight

    def resolve(self, weight: float, pressure_alt: float, temperature: float) -> Tuple[AxisBracket, AxisBracket, AxisBracket]:
        g = self.grid
        return (resolve_axis(g.weights, weight),
                resolve_axis(g.pressure_alts, pressure_alt),
                resolve_axis(g.temperatures, temperature))

    def _corner(self, wi: int, pi: int, ti: int, trace: Optional[DebugTrace]) -> float:
        g = self.grid
        v = g.value(wi, pi, ti)
        key = f"W{wi}PA{pi}T{ti}"
        desc = f"Weight={_fmt(g.weights[wi])}kg, PA={_fmt(g.pressure_alts[pi])}ft, Temp={_fmt(g.temperatures[ti])}°C"
        if v is None:
            logger.warning("No %s for %s; using %s", self.label, desc, MISSING_VALUE)
            if trace is not None:
                trace.step(f"ERROR: No row found for {desc}")
            v = MISSING_VALUE
        if trace is not None:
            trace.corner(key, v)
            trace.step(f"Corner {key}: {desc} → {_fmt(v)}{self.unit}")
        return v

    # ---------- Core ----------
    def grid_value(self, weight: float, pressure_alt: float, temperature: float,
                   trace: Optional[DebugTrace] = None) -> Tuple[float, Tuple[AxisBracket, AxisBracket, AxisBracket]]:
        """
        Interpolated value at a point inside the weight axis. Never extrapolates
        on weight; the public lookup handles that by calling this twice.
        """
        wb, pb, tb = self.resolve(weight, pressure_alt, temperature)
        if trace is not None:
            trace.record("weight_bounds", wb.as_dict())
            trace.record("pressure_alt_bounds", pb.as_dict())
            trace.record("temperature_bounds", tb.as_dict())
            for name, b, u in (("Weight", wb, "kg"), ("Pressure altitude", pb, "ft"), ("Temperature", tb, "°C")):
                if b.exact:
                    trace.step(f"{name}: {_fmt(b.lo)}{u} (idx {b.lo_idx}) - exact match, no interpolation")
                else:
                    trace.step(f"{name} bounds: {_fmt(b.lo)}{u} (idx {b.lo_idx}) to {_fmt(b.hi)}{u} (idx {b.hi_idx})")

        if wb.exact and pb.exact and tb.exact:
            v = self.grid.value(wb.lo_idx, pb.lo_idx, tb.lo_idx)
            if v is not None:
                if trace is not None:
                    trace.step(f"All dimensions exact match: Weight={_fmt(wb.lo)}kg, PA={_fmt(pb.lo)}ft, "
                               f"Temp={_fmt(tb.lo)}°C → {_fmt(v)}{self.unit}")
                return v, (wb, pb, tb)

        values = [
            [
                [self._corner(wi, pi, ti, trace) for ti in (tb.lo_idx, tb.hi_idx)]
                for pi in (pb.lo_idx, pb.hi_idx)
            ]
            for wi in (wb.lo_idx, wb.hi_idx)
        ]
        result = trilinear(weight, pressure_alt, temperature,
                           wb.lo, wb.hi, pb.lo, pb.hi, tb.lo, tb.hi, values)
        if trace is not None:
            trace.step(f"{interpolation_kind(wb, pb, tb)} result: {result:.2f}{self.unit}")
        return result, (wb, pb, tb)

    def extrapolate_weight(self, weight: float, pressure_alt: float, temperature: float,
                           trace: Optional[DebugTrace] = None) -> Tuple[float, Tuple[AxisBracket, AxisBracket, AxisBracket]]:
        """v = v_max + (v_max - v_prev) * (w - w_max) / (w_max - w_prev) from the two heaviest weights."""
        w_prev, w_max = self.grid.weights[-2], self.grid.weights[-1]
        if trace is not None:
            trace.step(f"Sub-lookup at {_fmt(w_prev)}kg:")
        v_prev, _ = self.grid_value(w_prev, pressure_alt, temperature, trace)
        if trace is not None:
            trace.step(f"Sub-lookup at {_fmt(w_max)}kg:")
        v_max, brackets = self.grid_value(w_max, pressure_alt, temperature, trace)
        factor = (weight - w_max) / (w_max - w_prev)
        result = v_max + (v_max - v_prev) * factor
        if trace is not None:
            trace.record("extrapolation", {
                "w_prev": w_prev, "w_max": w_max, "v_prev": v_prev, "v_max": v_max, "factor": factor,
            })
            trace.record("weight_bounds", {"lo": w_prev, "hi": w_max, "lo_idx": len(self.grid.weights) - 2,
                                           "hi_idx": len(self.grid.weights) - 1, "exact": False})
            trace.record("pressure_alt_bounds", brackets[1].as_dict())
            trace.record("temperature_bounds", brackets[2].as_dict())
            trace.step(f"Extrapolation: Value at {_fmt(w_prev)}kg = {v_prev:.1f}{self.unit}, "
                       f"Value at {_fmt(w_max)}kg = {v_max:.1f}{self.unit}")
            trace.step(f"Extrapolation factor: ({_fmt(weight)} - {_fmt(w_max)}) / ({_fmt(w_max)} - {_fmt(w_prev)}) = {factor:.3f}")
            trace.step(f"Extrapolated value: {v_max:.1f} + ({v_max:.1f} - {v_prev:.1f}) * {factor:.3f} = {result:.1f}{self.unit}")
        return result, brackets

    def lookup_with_bounds(self, weight: float, pressure_alt: float, temperature: float,
                           trace: Optional[DebugTrace] = None) -> Tuple[float, Tuple[AxisBracket, AxisBracket, AxisBracket]]:
        cw, cpa, ct = self.clamp_inputs(weight, pressure_alt, temperature)
        extrapolate = self.needs_extrapolation(cw)
        if trace is not None:
            trace.record("input", {"weight": float(weight), "pressure_alt": float(pressure_alt),
                                   "temperature": float(temperature)})
            trace.record("clamped", {"weight": cw, "pressure_alt": cpa, "temperature": ct})
            trace.step(f"Input: Weight={_fmt(float(weight))}kg, PA={float(pressure_alt):.0f}ft, Temp={_fmt(float(temperature))}°C")
            trace.step(f"Clamped: Weight={_fmt(cw)}kg, PA={cpa:.0f}ft, Temp={_fmt(ct)}°C")
            if extrapolate:
                trace.step(f"Weight {_fmt(cw)}kg is above table maximum ({_fmt(self.max_weight)}kg) - "
                           f"using extrapolation from {_fmt(self.grid.weights[-2])}kg and {_fmt(self.max_weight)}kg data")
        if extrapolate:
            return self.extrapolate_weight(cw, cpa, ct, trace)
        return self.grid_value(cw, cpa, ct, trace)

    def lookup(self, weight: float, pressure_alt: float, temperature: float,
               trace: Optional[DebugTrace] = None) -> float:
        value, _ = self.lookup_with_bounds(weight, pressure_alt, temperature, trace)
        return value


# ---------------------------
# Decks
# ---------------------------
class DistanceDeck:
    """Ground roll and over-50ft distances (metres) for one operation type."""

    def __init__(self, operation: str = "takeoff", csv_path: Optional[str] = None,
                 df: Optional[pd.DataFrame] = None):
        op = str(operation).lower().strip()
        if op not in OPERATIONS:
            raise ValueError(f"Unknown operation type: {operation!r}")
        self.operation = op
        self.df = (df if df is not None else load_distance_csv(op, csv_path)).copy()
        self.tables: Dict[str, GridLookup] = {}
        for seg in SEGMENTS:
            d = self.df[self.df["segment"] == seg]
            if d.empty:
                raise ValueError(f"{op} distance table has no '{seg}' rows")
            self.tables[seg] = GridLookup(PerfGrid.from_frame(d, "distance_m"), label=f"{op} {seg}", unit="m")

    def table(self, segment: str) -> GridLookup:
        seg = str(segment).lower().strip()
        if seg not in self.tables:
            raise ValueError(f"Unknown segment: {segment!r}")
        return self.tables[seg]

    def lookup(self, weight: float, pressure_alt: float, temperature: float, segment: str,
               trace: Optional[DebugTrace] = None) -> float:
        return self.table(segment).lookup(weight, pressure_alt, temperature, trace)


@dataclass
class ClimbPoint:
    rate_of_climb_fpm: float
    vy_kias: float


class ClimbDeck:
    """Rate of climb (ft/min) with the best-rate climb speed recorded per PA row."""

    def __init__(self, csv_path: Optional[str] = None, df: Optional[pd.DataFrame] = None):
        self.df = (df if df is not None else load_rate_of_climb_csv(csv_path)).copy()
        self.table = GridLookup(PerfGrid.from_frame(self.df, "rate_of_climb_fpm"),
                                label="rate of climb", unit=" ft/min")
        g = self.table.grid
        d = self.df.astype({"weight_kg": float, "pressure_alt_ft": float})
        vy = d.groupby(["weight_kg", "pressure_alt_ft"])["vy_kias"].first()
        vy = vy.reindex(pd.MultiIndex.from_product([g.weights, g.pressure_alts]))
        self.vy = vy.to_numpy(dtype=float).reshape(len(g.weights), len(g.pressure_alts)).copy()
        self.vy.setflags(write=False)

    def climb_speed(self, wi: int, pi: int) -> float:
        v = self.vy[wi, pi]
        if np.isnan(v):
            g = self.table.grid
            logger.warning("No Vy for weight=%skg PA=%sft; using %s kt",
                           _fmt(g.weights[wi]), _fmt(g.pressure_alts[pi]), _fmt(DEFAULT_VY_KIAS))
            return DEFAULT_VY_KIAS
        return float(v)

    def lookup(self, weight: float, pressure_alt: float, temperature: float,
               trace: Optional[DebugTrace] = None) -> ClimbPoint:
        rate, (wb, pb, _) = self.table.lookup_with_bounds(weight, pressure_alt, temperature, trace)
        # Vy is never interpolated: exact PA row, or the lower PA row of the bracket
        vy = self.climb_speed(wb.lo_idx, pb.lo_idx)
        if trace is not None:
            trace.record("climb_speed_kias", vy)
            trace.step(f"Climb speed (Vy): {_fmt(vy)} kt")
        return ClimbPoint(rate_of_climb_fpm=rate, vy_kias=vy)


@dataclass
class CruisePoint:
    ktas: float
    fuel_flow_lph: float
    power_percent: float
    rpm: Optional[float]
    isa_condition: str
    pressure_alt_ft: Optional[float]


class CruiseTable:
    """Nearest-row cruise selection by KTAS or RPM within a (PA, ISA band) slice."""

    def __init__(self, csv_path: Optional[str] = None, df: Optional[pd.DataFrame] = None):
        self.df = (df if df is not None else load_cruise_csv(csv_path)).reset_index(drop=True)
        self.pressure_alts = tuple(float(p) for p in sorted(self.df["pressure_alt_ft"].dropna().unique()))
        if not self.pressure_alts:
            raise ValueError("Cruise table has no pressure altitudes")

    def nearest_pressure_alt(self, pressure_alt: float) -> float:
        pa = clamp(float(pressure_alt), self.pressure_alts[0], self.pressure_alts[-1])
        best, best_diff = self.pressure_alts[0], abs(self.pressure_alts[0] - pa)
        for p in self.pressure_alts:
            diff = abs(p - pa)
            if diff < best_diff:
                best, best_diff = p, diff
        return best

    def _slice(self, pressure_alt: float, temperature: float,
               trace: Optional[DebugTrace]) -> Tuple[pd.DataFrame, str, float]:
        band = isa_condition(pressure_alt, temperature)
        table_pa = self.nearest_pressure_alt(pressure_alt)
        rows = self.df[(self.df["pressure_alt_ft"] == table_pa) & (self.df["isa_condition"] == band)]
        if trace is not None:
            trace.record("isa_condition", band)
            trace.record("table_pressure_alt", table_pa)
            trace.step(f"Pressure altitude: {float(pressure_alt):.0f}ft")
            trace.step(f"ISA temperature at {float(pressure_alt):.0f}ft: {isa_temperature_c(pressure_alt):.1f}°C")
            trace.step(f"Actual temperature: {_fmt(float(temperature))}°C "
                       f"(deviation: {isa_deviation_c(pressure_alt, temperature):.1f}°C)")
            trace.step(f"Using ISA condition: {band}, table pressure altitude {_fmt(table_pa)}ft")
        return rows, band, table_pa

    def _select(self, pressure_alt: float, temperature: float, col: str, target: float,
                trace: Optional[DebugTrace]) -> CruisePoint:
        rows, band, table_pa = self._slice(pressure_alt, temperature, trace)
        if rows.empty:
            logger.warning("No cruise rows for PA=%sft %s", _fmt(table_pa), band)
            if trace is not None:
                trace.step(f"ERROR: No cruise rows for {_fmt(table_pa)}ft / {band}")
            return CruisePoint(MISSING_VALUE, MISSING_VALUE, MISSING_VALUE, None, band, None)
        diffs = (rows[col] - float(target)).abs().to_numpy()
        i = int(np.argmin(diffs))  # first minimum wins ties
        row = rows.iloc[i]
        point = CruisePoint(
            ktas=float(row["ktas"]),
            fuel_flow_lph=float(row["fuel_flow_lph"]),
            power_percent=float(row["power_percent"]),
            rpm=float(row["rpm"]),
            isa_condition=band,
            pressure_alt_ft=table_pa,
        )
        if trace is not None:
            trace.step(f"Found match: RPM {_fmt(point.rpm)}, KTAS {_fmt(point.ktas)}kt "
                       f"(target {col.upper()}: {float(target):.1f}, diff: {float(diffs[i]):.1f})")
            trace.step(f"Fuel consumption: {_fmt(point.fuel_flow_lph)} LPH")
            trace.step(f"Power: {_fmt(point.power_percent)}%")
        return point

    def lookup_by_ktas(self, pressure_alt: float, temperature: float, ktas: float,
                       trace: Optional[DebugTrace] = None) -> CruisePoint:
        if trace is not None:
            trace.step(f"Looking up KTAS: {float(ktas):.1f}")
        return self._select(pressure_alt, temperature, "ktas", ktas, trace)

    def lookup_by_rpm(self, pressure_alt: float, temperature: float, rpm: float,
                      trace: Optional[DebugTrace] = None) -> CruisePoint:
        if trace is not None:
            trace.step(f"Looking up RPM: {_fmt(float(rpm))}")
        return self._select(pressure_alt, temperature, "rpm", rpm, trace)


# ---------------------------
# Process-wide default decks
# ---------------------------
@lru_cache(maxsize=None)
def get_distance_deck(operation: str = "takeoff") -> DistanceDeck:
    return DistanceDeck(operation)


@lru_cache(maxsize=None)
def get_climb_deck() -> ClimbDeck:
    return ClimbDeck()


@lru_cache(maxsize=None)
def get_cruise_table() -> CruiseTable:
    return CruiseTable()


def lookup_distance(weight: float, pressure_alt: float, temperature: float, segment: str,
                    operation: str = "takeoff", trace: Optional[DebugTrace] = None) -> float:
    return get_distance_deck(str(operation).lower().strip()).lookup(weight, pressure_alt, temperature, segment, trace)


def lookup_rate_of_climb(weight: float, pressure_alt: float, temperature: float,
                         trace: Optional[DebugTrace] = None) -> ClimbPoint:
    return get_climb_deck().lookup(weight, pressure_alt, temperature, trace)


def lookup_cruise_by_airspeed(pressure_alt: float, temperature: float, ktas: float,
                              trace: Optional[DebugTrace] = None) -> CruisePoint:
    return get_cruise_table().lookup_by_ktas(pressure_alt, temperature, ktas, trace)


def lookup_cruise_by_rpm(pressure_alt: float, temperature: float, rpm: float,
                         trace: Optional[DebugTrace] = None) -> CruisePoint:
    return get_cruise_table().lookup_by_rpm(pressure_alt, temperature, rpm, trace)
