# data_loaders.py — v1.0.0-data
# Path-hardening: all CSV loads default to ./data relative to this file.
# Smart fallback: if a caller passes a bare filename or a non-existent path,
# we transparently try ./data/<name> before failing.
# Each loader is memoised, so a document is read once per process.

from __future__ import annotations
import logging
import os
from functools import lru_cache
from typing import Iterable, Optional

import pandas as pd

logger = logging.getLogger(__name__)

# Resolve ./data relative to this file (works for checkouts and installs alike)
_DATA_DIR = os.path.join(os.path.dirname(__file__), "data")

TAKEOFF_CSV = "p2002jf_takeoff_distance.csv"
LANDING_CSV = "p2002jf_landing_distance.csv"
RATE_OF_CLIMB_CSV = "p2002jf_rate_of_climb.csv"
CRUISE_CSV = "p2002jf_cruise_performance.csv"

DISTANCE_COLUMNS = ("weight_kg", "pressure_alt_ft", "segment", "temp_c", "distance_m")
RATE_OF_CLIMB_COLUMNS = ("weight_kg", "pressure_alt_ft", "vy_kias", "temp_c", "rate_of_climb_fpm")
CRUISE_COLUMNS = ("pressure_alt_ft", "rpm", "isa_condition", "ktas", "fuel_flow_lph", "power_percent")


def _csv_path(name: str) -> str:
    return os.path.join(_DATA_DIR, name)


def resolve_data_path(path: Optional[str], default_name: str) -> str:
    """
    Resolution rules:
      1) If path is None -> use ./data/<default_name>.
      2) If path exists as given -> use as-is.
      3) Otherwise -> try ./data/<basename(path)>.
      4) If that still doesn't exist -> raise FileNotFoundError (with every tried path).
    """
    if path is None:
        p = _csv_path(default_name)
        if os.path.isfile(p):
            return p
        raise FileNotFoundError(f"Missing required CSV: {p}")

    tried = []
    if os.path.isfile(path):
        return path
    tried.append(path)

    candidate = _csv_path(os.path.basename(path))
    if os.path.isfile(candidate):
        return candidate
    tried.append(candidate)

    raise FileNotFoundError(f"No such file. Tried: {tried}")


def _read_table(path: Optional[str], default_name: str, required: Iterable[str], label: str) -> pd.DataFrame:
    resolved = resolve_data_path(path, default_name)
    df = pd.read_csv(resolved)
    missing = set(required) - set(df.columns)
    if missing:
        raise ValueError(f"{label} CSV missing columns: {sorted(missing)}")
    logger.debug("Loaded %s table from %s (%d rows)", label, resolved, len(df))
    return df


def _to_numeric(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for c in cols:
        df[c] = pd.to_numeric(df[c], errors="coerce")
    return df


@lru_cache(maxsize=None)
def load_distance_csv(operation: str = "takeoff", path: Optional[str] = None) -> pd.DataFrame:
    """
    Takeoff or landing distance table.
    Columns required: weight_kg, pressure_alt_ft, segment, temp_c, distance_m
    Default location: ./data/p2002jf_takeoff_distance.csv or ./data/p2002jf_landing_distance.csv
    """
    op = str(operation).lower().strip()
    if op not in ("takeoff", "landing"):
        raise ValueError(f"Unknown operation type: {operation!r}")
    default_name = TAKEOFF_CSV if op == "takeoff" else LANDING_CSV
    df = _read_table(path, default_name, DISTANCE_COLUMNS, f"{op} distance")
    df = _to_numeric(df, ("weight_kg", "pressure_alt_ft", "temp_c", "distance_m"))
    df["segment"] = df["segment"].astype(str).str.lower().str.strip()
    return df


@lru_cache(maxsize=None)
def load_rate_of_climb_csv(path: Optional[str] = None) -> pd.DataFrame:
    """
    Rate-of-climb table.
    Columns required: weight_kg, pressure_alt_ft, vy_kias, temp_c, rate_of_climb_fpm
    Default location: ./data/p2002jf_rate_of_climb.csv
    """
    df = _read_table(path, RATE_OF_CLIMB_CSV, RATE_OF_CLIMB_COLUMNS, "rate of climb")
    return _to_numeric(df, RATE_OF_CLIMB_COLUMNS)


@lru_cache(maxsize=None)
def load_cruise_csv(path: Optional[str] = None) -> pd.DataFrame:
    """
    Cruise performance table. Row order is kept: it decides ties in nearest-row matching.
    Columns required: pressure_alt_ft, rpm, isa_condition, ktas, fuel_flow_lph, power_percent
    Default location: ./data/p2002jf_cruise_performance.csv
    """
    df = _read_table(path, CRUISE_CSV, CRUISE_COLUMNS, "cruise")
    df = _to_numeric(df, ("pressure_alt_ft", "rpm", "ktas", "fuel_flow_lph", "power_percent"))
    df["isa_condition"] = df["isa_condition"].astype(str).str.upper().str.replace(" ", "", regex=False)
    return df
