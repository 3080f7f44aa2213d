"""Append-only, lane-switching output surface handed to user computations.

Content of one kind is appended to the current lane container in place.
Content of a different kind opens a fresh container after the previous ones;
earlier containers are left untouched.
"""

from __future__ import annotations

from typing import Any, List, NamedTuple, Optional, Sequence

from dash import dcc, html

from . import config
from .errors import StructuralError

_CONTAINERS = {
    "block": html.Div,
    "tabular": html.Table,
    "vector": html.Figure,
}


class Lane(NamedTuple):
    kind: str
    element: Any


class OutputStream:
    def __init__(self, name: str):
        self.name = name
        self.lanes: List[Lane] = []
        self.lane_name: Optional[str] = None
        self.lane_elem: Any = None

    def set_lane(self, kind: str, **attributes: Any) -> Any:
        if kind == self.lane_name:
            return self.lane_elem
        category = config.LANE_CATEGORIES.get(kind)
        if category is None:
            raise StructuralError(f"invalid lane name {kind}")
        class_name = f"{config.LANE_CLASS} {config.LANE_CLASS}-{kind}"
        extra_class = attributes.pop("className", None)
        if extra_class:
            class_name = f"{class_name} {extra_class}"
        elem = _CONTAINERS[category](children=[], className=class_name, **attributes)
        self.lanes.append(Lane(kind, elem))
        self.lane_name = kind
        self.lane_elem = elem
        return elem

    def raw_append(self, element: Any) -> None:
        if self.lane_elem is None:
            raise StructuralError(f"{self.name}: no lane set for raw_append")
        self.lane_elem.children.append(element)

    def add_line(self, *parts: Any, tags: Sequence[str] = ()) -> None:
        self.set_lane("log")
        class_name = " ".join(
            [config.LOG_LINE_CLASS] + [f"{config.LOG_LINE_CLASS}-{tag}" for tag in tags]
        )
        text = " ".join(str(part) for part in parts)
        self.lane_elem.children.append(html.Div(text, className=class_name))

    def info(self, *parts: Any) -> None:
        self.add_line(*parts, tags=("info",))

    def warn(self, *parts: Any) -> None:
        self.add_line(*parts, tags=("warn",))

    def error(self, *parts: Any) -> None:
        self.add_line(*parts, tags=("error",))

    def debug(self, *parts: Any) -> None:
        self.add_line(*parts, tags=("debug",))

    def success(self, *parts: Any) -> None:
        self.add_line(*parts, tags=("success",))

    def add_row(self, cells: Any, header: bool = False) -> None:
        self.set_lane("table")
        if isinstance(cells, html.Tr):
            row = cells
        else:
            cell_type = html.Th if header else html.Td
            row = html.Tr([cell_type(str(cell)) for cell in cells])
        self.lane_elem.children.append(row)

    def add_figure(self, figure: Any, **graph_props: Any) -> None:
        self.set_lane("svg")
        graph_props.setdefault("config", {"displaylogo": False})
        self.lane_elem.children.append(dcc.Graph(figure=figure, **graph_props))

    def add_break(self) -> None:
        self.set_lane("separator")

    def clear(self) -> None:
        self.lanes = []
        self.lane_name = None
        self.lane_elem = None

    def lane_kinds(self) -> List[str]:
        return [lane.kind for lane in self.lanes]

    def render(self) -> List[Any]:
        return [lane.element for lane in self.lanes]

