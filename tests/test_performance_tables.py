# tests/test_performance_tables.py — grid lookups against the bundled tables
import os
import sys

HERE = os.path.dirname(__file__)
ROOT = os.path.abspath(os.path.join(HERE, ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import pandas as pd  # noqa: E402
import pytest  # noqa: E402

import performance_tables as pt  # noqa: E402
from debug_trace import DebugTrace  # noqa: E402


# ---------- axis resolution ----------
def test_resolve_axis_exact_and_bracket():
    axis = (0.0, 2000.0, 4000.0)
    b = pt.resolve_axis(axis, 2000)
    assert b.exact and (b.lo_idx, b.hi_idx) == (1, 1)
    b = pt.resolve_axis(axis, 3000)
    assert not b.exact and (b.lo, b.hi) == (2000.0, 4000.0)


def test_interpolation_kind_labels():
    w, p, t = (500.0, 520.0, 550.0, 580.0), (0.0, 2000.0), pt.TEMPERATURE_AXIS_C
    kind = lambda *x: pt.interpolation_kind(*(pt.resolve_axis(a, v) for a, v in zip((w, p, t), x)))  # noqa: E731
    assert kind(550, 0, 15) == "Exact match (no interpolation)"
    assert kind(550, 1000, 15) == "PA interpolation only"
    assert kind(550, 0, 7) == "Temperature interpolation only"
    assert kind(540, 1000, 15) == "Bilinear (Weight + PA)"
    assert kind(540, 1000, 7) == "Trilinear (Weight + PA + Temp)"


# ---------- distances ----------
def test_exact_table_rows():
    assert pt.lookup_distance(550, 0, 15, "ground_roll") == pytest.approx(261)
    assert pt.lookup_distance(550, 0, 15, "over_50ft") == pytest.approx(456)
    assert pt.lookup_distance(580, 0, 15, "ground_roll", "landing") == pytest.approx(200)
    assert pt.lookup_distance(580, 0, 15, "over_50ft", "landing") == pytest.approx(410)


def test_single_axis_interpolation():
    assert pt.lookup_distance(565, 0, 15, "ground_roll") == pytest.approx((261 + 290) / 2)
    assert pt.lookup_distance(550, 1000, 15, "ground_roll") == pytest.approx((261 + 325) / 2)
    assert pt.lookup_distance(550, 0, 7.5, "ground_roll") == pytest.approx((237 + 261) / 2)


def test_trilinear_stays_inside_corner_range():
    v = pt.lookup_distance(565, 1000, 7.5, "ground_roll")
    assert 237 < v < 361


def test_out_of_range_inputs_are_clamped():
    # temperature above 50 reads the 50 degC column
    assert pt.lookup_distance(550, 0, 60, "ground_roll") == pt.lookup_distance(550, 0, 50, "ground_roll")
    # light weights read the lightest row
    assert pt.lookup_distance(400, 0, 15, "ground_roll") == pytest.approx(216)
    # negative PA reads the sea-level row
    assert pt.lookup_distance(550, -800, 15, "ground_roll") == pytest.approx(261)
    assert pt.lookup_distance(550, 15000, 15, "ground_roll") == pt.lookup_distance(550, 10000, 15, "ground_roll")


def test_weight_extrapolation_above_table():
    expected = 290 + (290 - 261) * (600 - 580) / (580 - 550)
    assert pt.lookup_distance(600, 0, 15, "ground_roll") == pytest.approx(expected)
    # anything heavier is clamped to 600 kg first
    assert pt.lookup_distance(700, 0, 15, "ground_roll") == pytest.approx(expected)


def test_extrapolation_trace():
    trace = DebugTrace("takeoff ground_roll")
    pt.lookup_distance(590, 1000, 7.5, "ground_roll", "takeoff", trace)
    snap = trace.snapshot
    # both sub-lookups (550 and 580 kg) leave their corners in the trace
    corners = snap["corner_values"]
    assert len(corners) == 8
    assert corners["W2PA0T1"] == 237
    assert corners["W3PA1T2"] == 361
    assert "Sub-lookup at 550kg:" in trace.steps
    assert "Sub-lookup at 580kg:" in trace.steps
    assert snap["extrapolation"]["w_prev"] == 550
    assert snap["extrapolation"]["w_max"] == 580
    assert snap["clamped"]["weight"] == 590
    assert any("above table maximum" in s for s in trace.steps)


def test_trace_records_corners_and_kind():
    trace = DebugTrace()
    pt.lookup_distance(565, 1000, 15, "ground_roll", "takeoff", trace)
    corners = trace.snapshot["corner_values"]
    assert corners["W2PA0T2"] == 261
    assert corners["W3PA1T2"] == 361
    assert any(s.startswith("Bilinear (Weight + PA) result") for s in trace.steps)


def test_unknown_segment_raises():
    with pytest.raises(ValueError):
        pt.lookup_distance(550, 0, 15, "over_35ft")


def _sparse_grid_frame():
    rows = []
    for w in (500, 580):
        for pa in (0, 2000):
            for t in pt.TEMPERATURE_AXIS_C:
                rows.append({"weight_kg": w, "pressure_alt_ft": pa, "segment": "ground_roll",
                             "temp_c": t, "distance_m": w / 2 + pa / 100 + t})
    df = pd.DataFrame(rows)
    # drop one corner
    hole = (df.weight_kg == 580) & (df.pressure_alt_ft == 2000) & (df.temp_c == 50)
    return df[~hole]


def test_missing_corner_reads_as_zero():
    lookup = pt.GridLookup(pt.PerfGrid.from_frame(_sparse_grid_frame(), "distance_m"), unit="m")
    trace = DebugTrace()
    assert lookup.lookup(580, 2000, 50, trace) == 0
    assert any(s.startswith("ERROR: No row found") for s in trace.steps)
    # neighbours are unaffected
    assert lookup.lookup(580, 2000, 25) == pytest.approx(290 + 20 + 25)


def test_grid_is_read_only():
    grid = pt.get_distance_deck("takeoff").table("ground_roll").grid
    with pytest.raises(ValueError):
        grid.values[0, 0, 0] = 1.0


# ---------- rate of climb ----------
def test_rate_of_climb_exact():
    point = pt.lookup_rate_of_climb(580, 0, 15)
    assert point.rate_of_climb_fpm == pytest.approx(880)
    assert point.vy_kias == 66


def test_climb_speed_uses_lower_pa_row():
    assert pt.lookup_rate_of_climb(580, 4000, 15).vy_kias == 65
    # between 2000 (66) and 4000 (65): the lower PA row wins
    assert pt.lookup_rate_of_climb(565, 3900, 15).vy_kias == 66
    assert pt.lookup_rate_of_climb(550, 10000, 15).vy_kias == 62


def test_rate_of_climb_interpolates_and_extrapolates():
    assert pt.lookup_rate_of_climb(580, 1000, 15).rate_of_climb_fpm == pytest.approx((880 + 760) / 2)
    expected = 880 + (880 - 948) * (600 - 580) / (580 - 550)
    assert pt.lookup_rate_of_climb(600, 0, 15).rate_of_climb_fpm == pytest.approx(expected)


# ---------- cruise ----------
def test_cruise_by_airspeed_standard_day():
    p = pt.lookup_cruise_by_airspeed(0, 15, 109)
    assert (p.rpm, p.ktas, p.fuel_flow_lph, p.power_percent) == (2200, 109, 18.9, 74)
    assert p.isa_condition == "ISA"


def test_cruise_band_selection():
    cold = pt.lookup_cruise_by_airspeed(0, -15, 110)
    assert cold.isa_condition == "ISA-30" and cold.fuel_flow_lph == 19.7
    hot = pt.lookup_cruise_by_rpm(0, 40, 2200)
    assert hot.isa_condition == "ISA+30" and hot.ktas == 107


def test_cruise_nearest_row_ties_take_first():
    # 101.5 is 2.5 kt from both 99 (2000 rpm) and 104 (2100 rpm)
    assert pt.lookup_cruise_by_airspeed(0, 15, 101.5).rpm == 2000
    # 2250 rpm sits halfway between 2200 and 2300
    p = pt.lookup_cruise_by_rpm(4000, 7, 2250)
    assert p.rpm == 2200 and p.ktas == 110 and p.fuel_flow_lph == 16.8


def test_cruise_nearest_pressure_altitude():
    table = pt.get_cruise_table()
    assert table.nearest_pressure_alt(2999) == 2000
    assert table.nearest_pressure_alt(3000) == 2000
    assert table.nearest_pressure_alt(3001) == 4000
    assert table.nearest_pressure_alt(-300) == 0
    assert table.nearest_pressure_alt(14000) == 10000


def test_cruise_band_uses_unclamped_pressure_altitude():
    # ISA temp at 12000 ft is -9 degC, so +11 degC is ISA+30 there (it would be ISA at 10000 ft)
    p = pt.lookup_cruise_by_rpm(12000, 11, 2000)
    assert p.isa_condition == "ISA+30"
    assert p.pressure_alt_ft == 10000
    assert (p.ktas, p.fuel_flow_lph) == (98, 9.8)


def test_cruise_empty_slice_returns_zeros():
    df = pd.DataFrame([{"pressure_alt_ft": 0, "rpm": 2000, "isa_condition": "ISA", "ktas": 99,
                        "fuel_flow_lph": 14.2, "power_percent": 56}])
    table = pt.CruiseTable(df=df)
    p = table.lookup_by_rpm(0, 40, 2000)
    assert p.isa_condition == "ISA+30"
    assert (p.ktas, p.fuel_flow_lph, p.power_percent, p.rpm) == (0, 0, 0, None)


def _heavy_grid_frame():
    rows = []
    for w in (500, 580, 620):
        for pa in (0, 2000):
            for t in pt.TEMPERATURE_AXIS_C:
                rows.append({"weight_kg": w, "pressure_alt_ft": pa, "temp_c": t, "distance_m": float(w)})
    return pd.DataFrame(rows)


def test_weight_ceiling_is_fixed_at_600kg():
    lookup = pt.GridLookup(pt.PerfGrid.from_frame(_heavy_grid_frame(), "distance_m"))
    cw, _, _ = lookup.clamp_inputs(650, 0, 15)
    assert cw == 600
    assert not lookup.needs_extrapolation(cw)
    assert lookup.lookup(650, 0, 15) == pytest.approx(600)


def test_deck_frames_are_private_copies():
    deck = pt.DistanceDeck("takeoff")
    deck.df.loc[:, "distance_m"] = -1
    assert (pt.DistanceDeck("takeoff").df["distance_m"] > 0).all()
    climb = pt.ClimbDeck()
    climb.df.loc[:, "vy_kias"] = 0
    assert (pt.ClimbDeck().df["vy_kias"] > 0).all()
