"""Demo computations used by dash_app.py to exercise the engine."""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import plotly.graph_objects as go

from . import config
from .converters import at_least, compose, in_range, list_of, matrix_of, to_float, to_int
from .ostream import OutputStream
from .params import Param, ParamGroup
from .widgets import CheckBoxWidget, SelectOption, SelectWidget, TextWidget

PLOT_POINTS = 401
# trace name -> (plotly mode, style)
_TRACES = {
    "curve": ("lines", {"line": {"color": "#0072B2", "width": 3}}),
    "vertex": ("markers", {"marker": {"color": "#D55E00", "size": 10}}),
    "roots": ("markers", {"marker": {"color": "#000000", "size": 9, "symbol": "x"}}),
}


def grid(count: int, lo: float = config.X_MIN, hi: float = config.X_MAX) -> List[float]:
    """``count`` evenly spaced points covering [lo, hi]."""
    if count == 1:
        return [lo]
    return [lo + (hi - lo) * i / (count - 1) for i in range(count)]


@dataclass(frozen=True)
class Parabola:
    a: float
    b: float
    c: float

    def __call__(self, x: float) -> float:
        return (self.a * x + self.b) * x + self.c

    @property
    def degenerate(self) -> bool:
        return abs(self.a) < config.EPS_ZERO

    @property
    def discriminant(self) -> float:
        return self.b ** 2 - 4 * self.a * self.c

    def vertex(self) -> Optional[Tuple[float, float]]:
        if self.degenerate:
            return None
        x = -self.b / (2 * self.a)
        return x, self(x)

    def roots(self) -> List[float]:
        if self.degenerate:
            # bx + c = 0, or no root at all when b vanishes too
            if abs(self.b) < config.EPS_ZERO:
                return []
            return [-self.c / self.b]
        d = self.discriminant
        if d < -config.EPS_ZERO:
            return []
        half = math.sqrt(max(d, 0.0)) / (2 * abs(self.a))
        mid = -self.b / (2 * self.a)
        return [mid] if half == 0 else [mid - half, mid + half]

    def figure(self, xs: List[float]) -> go.Figure:
        top = self.vertex()
        roots = self.roots()
        points = {
            "curve": (xs, [self(x) for x in xs]),
            "vertex": ([top[0]], [top[1]]) if top else ([], []),
            "roots": (roots, [0.0] * len(roots)),
        }
        fig = go.Figure()
        for name, (x, y) in points.items():
            mode, style = _TRACES[name]
            fig.add_trace(go.Scatter(x=x, y=y, mode=mode, name=name, **style))
        fig.update_layout(height=420, showlegend=False, xaxis_title="x", yaxis_title="y")
        return fig


def _fmt(value: float) -> str:
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return text if text not in ("", "-0") else "0"


def quadratic(inp: Dict[str, Any], out: OutputStream) -> str:
    curve = Parabola(inp["a"], inp["b"], inp["c"])
    out.info(f"y = {_fmt(curve.a)}x^2 + {_fmt(curve.b)}x + {_fmt(curve.c)}")
    out.add_line("discriminant:", _fmt(curve.discriminant))
    top = curve.vertex()
    if top is None:
        out.warn("a = 0 collapses the parabola to a line; no vertex.")
    else:
        out.add_line("vertex:", f"({_fmt(top[0])}, {_fmt(top[1])})")
    out.add_row(["x", "y"], header=True)
    for x in grid(inp["samples"]):
        out.add_row([_fmt(x), _fmt(curve(x))])
    if inp["plot"]:
        out.add_figure(curve.figure(grid(PLOT_POINTS)))
    roots = curve.roots()
    if not roots:
        return "no real roots"
    return f"{len(roots)} real root(s): " + ", ".join(_fmt(r) for r in roots)


def list_stats(inp: Dict[str, Any], out: OutputStream) -> Any:
    values = inp["values"]
    out.debug("n =", len(values))
    return inp["statistic"](values)


def matrix_summary(inp: Dict[str, Any], out: OutputStream) -> str:
    rows = inp["matrix"]
    if inp["transpose"]:
        rows = [list(col) for col in zip(*rows)]
    width = len(rows[0])
    out.add_row([""] + [f"c{j}" for j in range(width)] + ["sum"], header=True)
    for i, row in enumerate(rows):
        out.add_row([f"r{i}"] + list(row) + [sum(row)])
    total = sum(sum(row) for row in rows)
    out.success(f"{len(rows)}x{width} matrix")
    return f"total = {total}"


QUADRATIC_GROUP = ParamGroup(
    "quadratic",
    [
        Param("a", TextWidget(to_float, default=1.0), description="Quadratic coefficient; fractions like 1/2 work."),
        Param("b", TextWidget(to_float, default=0.0)),
        Param("c", TextWidget(to_float, default=0.0)),
        Param(
            "samples",
            TextWidget(compose(in_range(2, PLOT_POINTS), to_int), default=9),
            label="table rows",
        ),
        Param("plot", CheckBoxWidget(default=True), label="draw plot"),
    ],
    description="Explore y = ax^2 + bx + c.",
)

STATS_GROUP = ParamGroup(
    "stats",
    [
        Param("values", TextWidget(list_of(",", to_float)), description="Comma-separated numbers."),
        Param(
            "statistic",
            SelectWidget(
                [
                    SelectOption("mean", statistics.mean),
                    SelectOption("median", statistics.median),
                    SelectOption("min", min, "minimum"),
                    SelectOption("max", max, "maximum"),
                ]
            ),
        ),
    ],
)

MATRIX_GROUP = ParamGroup(
    "matrix",
    [
        Param(
            "matrix",
            TextWidget(matrix_of(";", ",", compose(at_least(0), to_int))),
            description="Rows separated by ';', columns by ','. Non-negative integers.",
        ),
        Param("transpose", CheckBoxWidget()),
    ],
)
