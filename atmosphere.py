# atmosphere.py — v1.0.0
# Derived atmosphere for table lookups: pressure/density altitude, density ratio,
# KIAS <-> KTAS. Rule-of-thumb formulas as printed in the flight manual, not a
# full ISA model. No domain checks: every real input yields a number.

from __future__ import annotations
import math

STD_QNH_HPA = 1013.25
FT_PER_HPA = 30.0

ISA_SL_TEMP_C = 15.0
ISA_LAPSE_C_PER_1000FT = 2.0
DA_FT_PER_DEG_C = 118.8

T0_K = 288.15           # ISA sea-level temperature
KELVIN_OFFSET = 273.15
FT_TO_M = 0.3048
PRESSURE_SCALE_HEIGHT_M = 8434.5

# ISA bands used by the cruise table (deviation thresholds in deg C)
ISA_MINUS_30 = "ISA-30"
ISA_STD = "ISA"
ISA_PLUS_30 = "ISA+30"
ISA_BAND_THRESHOLD_C = 20.0


def pressure_altitude_ft(elevation_ft: float, qnh_hpa: float) -> float:
    return float(elevation_ft) + (STD_QNH_HPA - float(qnh_hpa)) * FT_PER_HPA


def isa_temperature_c(pressure_alt_ft: float) -> float:
    return ISA_SL_TEMP_C - (float(pressure_alt_ft) / 1000.0) * ISA_LAPSE_C_PER_1000FT


def isa_deviation_c(pressure_alt_ft: float, oat_c: float) -> float:
    return float(oat_c) - isa_temperature_c(pressure_alt_ft)


def density_altitude_ft(pressure_alt_ft: float, oat_c: float) -> float:
    """DA = PA + 118.8 * (OAT - ISA temp at PA)."""
    return float(pressure_alt_ft) + DA_FT_PER_DEG_C * isa_deviation_c(pressure_alt_ft, oat_c)


def density_ratio(pressure_alt_ft: float, oat_c: float) -> float:
    """
    sigma = (p / p0) * (T0 / T), with p from the exponential barometric
    approximation p = p0 * exp(-h_m / 8434.5).
    """
    h_m = float(pressure_alt_ft) * FT_TO_M
    p_ratio = math.exp(-h_m / PRESSURE_SCALE_HEIGHT_M)
    return p_ratio * (T0_K / (float(oat_c) + KELVIN_OFFSET))


def ktas_to_kias(ktas: float, pressure_alt_ft: float, oat_c: float) -> float:
    return float(ktas) * math.sqrt(density_ratio(pressure_alt_ft, oat_c))


def kias_to_ktas(kias: float, pressure_alt_ft: float, oat_c: float) -> float:
    return float(kias) / math.sqrt(density_ratio(pressure_alt_ft, oat_c))


def isa_condition(pressure_alt_ft: float, oat_c: float) -> str:
    """Cruise-table band: deviation <= -20 -> ISA-30, >= +20 -> ISA+30, else ISA."""
    dev = isa_deviation_c(pressure_alt_ft, oat_c)
    if dev <= -ISA_BAND_THRESHOLD_C:
        return ISA_MINUS_30
    if dev >= ISA_BAND_THRESHOLD_C:
        return ISA_PLUS_30
    return ISA_STD
