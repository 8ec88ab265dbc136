# tests/test_perf_runner.py — CLI smoke tests
import json
import os
import sys

HERE = os.path.dirname(__file__)
ROOT = os.path.abspath(os.path.join(HERE, ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import pytest  # noqa: E402

import perf_runner  # noqa: E402


def test_climb_from_flags(capsys):
    rc = perf_runner.main(["climb", "--weight-kg", "580", "--oat-c", "15", "--elevation-ft", "0"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["rate_of_climb_fpm"] == 880
    assert out["climb_speed_kias"] == 66


def test_takeoff_from_inputs_file_with_override(tmp_path, capsys):
    f = tmp_path / "inputs.json"
    f.write_text(json.dumps({"weight_kg": 550, "oat_c": 15, "elevation_ft": 0, "runway_surface": "grass"}))
    rc = perf_runner.main(["takeoff", "--inputs", str(f), "--runway-surface", "concrete", "--debug"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["base_ground_roll_m"] == 261
    assert out["ground_roll_m"] == 245
    assert "steps" in out["debug"]["ground_roll"]


def test_missing_cruise_field_exits_nonzero(capsys):
    rc = perf_runner.main(["cruise", "--oat-c", "15", "--elevation-ft", "0", "--input-mode", "rpm"])
    assert rc == 2
    assert capsys.readouterr().out == ""


def test_unknown_kind_is_rejected():
    with pytest.raises(SystemExit):
        perf_runner.main(["hover"])
