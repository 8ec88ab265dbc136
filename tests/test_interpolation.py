# tests/test_interpolation.py
import os
import sys

HERE = os.path.dirname(__file__)
ROOT = os.path.abspath(os.path.join(HERE, ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import pytest  # noqa: E402

from interpolation import bilinear, linear, trilinear  # noqa: E402


def test_linear_midpoint_and_ends():
    assert linear(5, 0, 10, 100, 200) == pytest.approx(150)
    assert linear(0, 0, 10, 100, 200) == pytest.approx(100)
    assert linear(10, 0, 10, 100, 200) == pytest.approx(200)


def test_linear_degenerate_bounds_return_first_corner():
    assert linear(7, 3, 3, 42, 99) == 42


def test_linear_extrapolates_outside_bounds():
    assert linear(20, 0, 10, 100, 200) == pytest.approx(300)


def test_bilinear_center_is_mean_of_corners():
    v = bilinear(0.5, 0.5, 0, 1, 0, 1, 10, 20, 30, 40)
    assert v == pytest.approx(25)


def test_bilinear_x_axis_only():
    # y on the lower bound: only q11/q21 matter
    assert bilinear(0.25, 0, 0, 1, 0, 1, 0, 999, 100, 999) == pytest.approx(25)


def _corners(f, w, p, t):
    return [[[f(wi, pi, ti) for ti in t] for pi in p] for wi in w]


def test_trilinear_reproduces_linear_function():
    f = lambda w, p, t: 2 * w + 0.01 * p - 3 * t  # noqa: E731
    w, p, t = (500, 580), (0, 2000), (0, 15)
    v = trilinear(540, 500, 6, *w, *p, *t, _corners(f, w, p, t))
    assert v == pytest.approx(f(540, 500, 6))


def test_trilinear_degenerate_axes():
    # weight and PA collapse: only temperature interpolates
    values = [[[100, 200], [100, 200]], [[100, 200], [100, 200]]]
    v = trilinear(550, 0, 7.5, 550, 550, 0, 0, 0, 15, values)
    assert v == pytest.approx(150)


def test_trilinear_all_degenerate_returns_first_corner():
    values = [[[7, 8], [9, 10]], [[11, 12], [13, 14]]]
    assert trilinear(1, 2, 3, 1, 1, 2, 2, 3, 3, values) == 7


def test_bound_order_does_not_matter():
    assert linear(5, 10, 0, 200, 100) == pytest.approx(linear(5, 0, 10, 100, 200))
    a = bilinear(0.3, 0.7, 0, 1, 0, 1, 1, 2, 3, 4)
    b = bilinear(0.3, 0.7, 1, 0, 1, 0, 4, 3, 2, 1)
    assert a == pytest.approx(b)


def test_trilinear_axis_order_does_not_matter():
    # non-affine corners: includes a w*p*t term
    f = lambda w, p, t: w * p * t + 3 * w * w - p * t + 7  # noqa: E731
    w1, w2, p1, p2, t1, t2 = 500, 580, 0, 2000, 0, 15
    values = _corners(f, (w1, w2), (p1, p2), (t1, t2))
    w, p, t = 537, 1430, 11

    # weight first, then PA, then temperature
    by_w = [[linear(w, w1, w2, values[0][j][k], values[1][j][k]) for k in (0, 1)] for j in (0, 1)]
    by_p = [linear(p, p1, p2, by_w[0][k], by_w[1][k]) for k in (0, 1)]
    expected = linear(t, t1, t2, by_p[0], by_p[1])

    assert trilinear(w, p, t, w1, w2, p1, p2, t1, t2, values) == pytest.approx(expected)
