from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple

from . import config
from .errors import DefinitionError
from .widgets import Widget

_NAME_RE = re.compile(config.NAME_PATTERN)


def _check_name(name: str, what: str) -> None:
    if not isinstance(name, str) or not _NAME_RE.match(name):
        raise DefinitionError(f"Invalid {what} name {name!r}")


class Param:
    def __init__(
        self,
        name: str,
        widget: Widget,
        label: Optional[str] = None,
        description: Optional[str] = None,
    ):
        _check_name(name, "parameter")
        if not isinstance(widget, Widget):
            raise DefinitionError(f"parameter {name} needs a widget, got {widget!r}")
        self.name = name
        self.widget = widget
        self.label = name if label is None else label
        self.description = description

    def __repr__(self) -> str:
        return f"Param({self.name!r}, {type(self.widget).__name__})"


class ParamGroup:
    """An ordered set of uniquely named params; one form."""

    def __init__(self, name: str, params: Iterable[Param], description: Optional[str] = None):
        _check_name(name, "group")
        self.name = name
        self.description = description
        seen = set()
        collected = []
        for param in params:
            if isinstance(param, ParamGroup):
                raise DefinitionError(
                    f"group {name}: nested group {param.name} is not supported"
                )
            if not isinstance(param, Param):
                raise DefinitionError(f"group {name}: {param!r} is not a Param")
            if param.name in seen:
                raise DefinitionError(f"Parameter name {param.name} already used")
            seen.add(param.name)
            collected.append(param)
        self._params: Tuple[Param, ...] = tuple(collected)

    @property
    def params(self) -> Tuple[Param, ...]:
        return self._params

    def __iter__(self):
        return iter(self._params)

    def __len__(self) -> int:
        return len(self._params)

    def __repr__(self) -> str:
        return f"ParamGroup({self.name!r}, {[p.name for p in self._params]})"
