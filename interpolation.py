# interpolation.py — v1.0.0
# Iterated linear interpolation over a rectangular (possibly degenerate) grid.
# All three helpers extrapolate linearly when the query sits outside its bounds;
# a bound pair that collapses to one value (x1 == x2) returns the first corner.

from __future__ import annotations
from typing import Sequence


def linear(x: float, x1: float, x2: float, y1: float, y2: float) -> float:
    if x2 == x1:
        return y1
    return y1 + ((x - x1) / (x2 - x1)) * (y2 - y1)


def bilinear(
    x: float, y: float,
    x1: float, x2: float,
    y1: float, y2: float,
    q11: float, q12: float,
    q21: float, q22: float,
) -> float:
    """
    2-D box interpolation. qXY is the value at (x_X, y_Y):
      q11 = f(x1, y1), q12 = f(x1, y2), q21 = f(x2, y1), q22 = f(x2, y2)
    Resolves the x axis first, then y.
    """
    r1 = linear(x, x1, x2, q11, q21)
    r2 = linear(x, x1, x2, q12, q22)
    return linear(y, y1, y2, r1, r2)


def trilinear(
    weight: float, pressure_alt: float, temperature: float,
    w1: float, w2: float,
    pa1: float, pa2: float,
    t1: float, t2: float,
    values: Sequence[Sequence[Sequence[float]]],
) -> float:
    """
    3-D interpolation over values[weight][pressure_alt][temperature] (2x2x2).

    Order: temperature (innermost), then pressure altitude, then weight.
    For a degenerate axis the caller passes the same corner twice; the
    linear step on that axis then returns it unchanged.
    """
    (v111, v112), (v121, v122) = values[0]
    (v211, v212), (v221, v222) = values[1]

    c11 = linear(temperature, t1, t2, v111, v112)
    c12 = linear(temperature, t1, t2, v121, v122)
    c21 = linear(temperature, t1, t2, v211, v212)
    c22 = linear(temperature, t1, t2, v221, v222)

    c1 = linear(pressure_alt, pa1, pa2, c11, c12)
    c2 = linear(pressure_alt, pa1, pa2, c21, c22)

    return linear(weight, w1, w2, c1, c2)
