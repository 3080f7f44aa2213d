"""The single per-app session: live form registry, address state and trace log."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

from .errors import DefinitionError, StructuralError
from .logger import TraceLog
from .ostream import OutputStream
from .params import Param, ParamGroup
from .urlsync import QuerySynchronizer

Computation = Callable[[Dict[str, Any], OutputStream], Any]


@dataclass
class FormEntry:
    container_id: str
    group: ParamGroup
    form_name: str
    func: Computation
    ostream: OutputStream
    clear_output: bool = True
    controls: Dict[str, Any] = field(default_factory=dict)

    def key(self, param: Param) -> str:
        return f"{self.form_name}.{param.name}"

    def keys(self) -> List[str]:
        return [self.key(param) for param in self.group]

    def fields(self) -> Iterator[tuple]:
        for param in self.group:
            yield self.key(param), param


class AppSession:
    def __init__(
        self,
        initial_search: str = "",
        trace_dir: Optional[Path] = None,
        session_id: Optional[str] = None,
    ):
        self.forms: Dict[str, FormEntry] = {}
        self.query = QuerySynchronizer(initial_search)
        self.trace = TraceLog(session_id=session_id, log_dir=trace_dir)
        self.debug_info: Dict[str, Dict[str, Any]] = {}

    def register(self, entry: FormEntry) -> FormEntry:
        if entry.form_name in self.forms:
            raise DefinitionError(f"form {entry.form_name} already registered")
        self.forms[entry.form_name] = entry
        return entry

    def get(self, form_name: str) -> FormEntry:
        try:
            return self.forms[form_name]
        except KeyError:
            raise StructuralError(f"unregistered form {form_name}") from None

    def entries(self) -> List[FormEntry]:
        return list(self.forms.values())
