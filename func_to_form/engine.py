"""Form engine: build controls for a ParamGroup, run submissions, sync the URL.

Every field has one fully-qualified key, ``f2f.<group>.<param>``. It is the
control's ``name``, the key of the submitted data and the query-string key.
Dash ids cannot contain dots, so controls are addressed with dict ids
``{"type": ..., "form": <group>, "param": <param>}``.
"""

from __future__ import annotations

import enum
import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import dash
from dash import MATCH, Input, Output, State, dcc, html

from . import config
from .errors import ComputationError, StructuralError
from .ostream import OutputStream
from .params import Param, ParamGroup
from .session import AppSession, Computation, FormEntry
from .urlsync import parse_search
from .widgets import FieldError, Ok


class SubmitState(str, enum.Enum):
    IDLE = "idle"
    READING = "reading"
    INVALID = "invalid"
    COMPUTING = "computing"
    RENDERED = "rendered"


@dataclass
class SubmitOutcome:
    form_name: str
    state: SubmitState = SubmitState.IDLE
    errors: Dict[str, str] = field(default_factory=dict)
    values: Optional[Dict[str, Any]] = None
    output: Any = None
    # new query string, None when the address bar is left alone
    search: Optional[str] = None


def qualified_name(group_name: str) -> str:
    return f"{config.FORM_PREFIX}{config.KEY_SEPARATOR}{group_name}"


def component_id(kind: str, group_name: str, param_name: Optional[str] = None) -> Dict[str, str]:
    cid = {"type": kind, "form": group_name}
    if param_name is not None:
        cid["param"] = param_name
    return cid


class FormEngine:
    def __init__(self, session: Optional[AppSession] = None):
        self.session = session if session is not None else AppSession()
        self._bound = False

    # -- building -----------------------------------------------------------

    def location(self) -> dcc.Location:
        return dcc.Location(id=config.LOCATION_ID, refresh=False)

    def create_form(
        self,
        container_id: str,
        group: ParamGroup,
        func: Computation,
        clear_output: bool = True,
    ) -> html.Div:
        if self._bound:
            raise StructuralError(
                f"form {group.name} created after callbacks were registered"
            )
        form_name = qualified_name(group.name)
        entry = self.session.register(
            FormEntry(
                container_id=container_id,
                group=group,
                form_name=form_name,
                func=func,
                ostream=OutputStream(f"{form_name}.stdout"),
                clear_output=clear_output,
            )
        )
        children: List[Any] = []
        if group.description:
            children.append(html.P(group.description, className=config.HELP_CLASS))
        for key, param in entry.fields():
            control = param.widget.create(
                key, param.label, component_id(config.INPUT_TYPE, group.name, param.name)
            )
            entry.controls[key] = control
            children.append(self._field_row(group.name, param, control))
        children.append(
            html.Button(
                config.RUN_LABEL,
                id=component_id(config.RUN_TYPE, group.name),
                n_clicks=0,
                type="button",
            )
        )
        form = html.Div(
            children,
            id=component_id(config.FORM_TYPE, group.name),
            className=config.FORM_CLASS,
        )
        stream = html.Div(
            [],
            id=component_id(config.OSTREAM_TYPE, group.name),
            className=config.OSTREAM_CLASS,
        )
        self._populate(entry, self.session.query.current_query())
        self.session.trace.record("form_created", form=form_name, fields=entry.keys())
        return html.Div([form, stream], id=container_id)

    def _field_row(self, group_name: str, param: Param, control: Any) -> html.Div:
        children: List[Any] = []
        if not param.widget.labels_itself:
            children.append(html.Label(param.label))
        children.append(control)
        if param.description:
            children.append(
                html.Button(
                    config.HELP_LABEL,
                    id=component_id(config.HELP_TOGGLE_TYPE, group_name, param.name),
                    n_clicks=0,
                    type="button",
                )
            )
            children.append(
                html.Div(
                    param.description,
                    id=component_id(config.HELP_TYPE, group_name, param.name),
                    className=config.HELP_CLASS,
                    hidden=True,
                )
            )
        children.append(
            html.Div(
                "",
                id=component_id(config.ERROR_TYPE, group_name, param.name),
                className=config.ERROR_CLASS,
            )
        )
        return html.Div(children, className=config.FIELD_CLASS)

    def _populate(self, entry: FormEntry, query: Mapping[str, str]) -> Dict[str, Any]:
        # A form absent from the query gets its creation-time values back.
        present = any(key in query for key in entry.keys())
        values: Dict[str, Any] = {}
        for key, param in entry.fields():
            if present:
                value = param.widget.write(key, query.get(key))
            else:
                value = param.widget.initial_value()
            entry.controls[key].value = value
            values[key] = value
        return values

    # -- submission ---------------------------------------------------------

    def read_form(
        self, entry: FormEntry, submitted: Mapping[str, Optional[str]]
    ) -> Tuple[Dict[str, Any], Dict[str, str]]:
        values: Dict[str, Any] = {}
        errors: Dict[str, str] = {}
        for key, param in entry.fields():
            result = param.widget.try_read(key, submitted.get(key))
            if isinstance(result, Ok):
                values[param.name] = result.value
            elif isinstance(result, FieldError):
                errors[key] = result.message
            else:
                raise result.error
        return values, errors

    def submit(
        self,
        form_name: str,
        submitted: Mapping[str, Optional[str]],
        search: Optional[str] = None,
    ) -> SubmitOutcome:
        """Read, validate, compute and render one submission of ``form_name``.

        ``submitted`` maps fully-qualified keys to raw text, as a browser form
        submission would (absent checkbox -> missing key). ``search`` is the
        address bar's current query string; it defaults to the last applied one.
        """
        entry = self.session.get(form_name)
        foreign = sorted(set(submitted) - set(entry.keys()))
        if foreign:
            raise StructuralError(f"{form_name}: unregistered fields {foreign}")
        # Canonical raw text per field, as the live controls would submit it.
        canonical: Dict[str, Optional[str]] = {}
        for key, param in entry.fields():
            control_value = param.widget.write(key, submitted.get(key))
            entry.controls[key].value = control_value
            canonical[key] = param.widget.raw_value(control_value)
        outcome = SubmitOutcome(form_name, state=SubmitState.READING)
        values, errors = self.read_form(entry, submitted)
        if errors:
            outcome.state = SubmitState.INVALID
            outcome.errors = errors
            self.session.trace.record("submit_invalid", form=form_name, fields=sorted(errors))
            return outcome

        outcome.values = values
        if search is None:
            search = self.session.query.last_applied
        outcome.search = self.session.query.reconcile(search, canonical, form_name)
        if outcome.search is not None:
            self.session.trace.record("url_update", form=form_name, search=outcome.search)

        outcome.state = SubmitState.COMPUTING
        stream = entry.ostream
        if entry.clear_output:
            stream.clear()
        self.session.debug_info[form_name] = {"input": values, "output": None}
        try:
            output = entry.func(values, stream)
        except Exception as exc:
            stream.error(f"{type(exc).__name__}: {exc}")
            outcome.state = SubmitState.RENDERED
            self.session.trace.record(
                "computation_error",
                form=form_name,
                error=f"{type(exc).__name__}: {exc}",
                traceback="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            )
            raise ComputationError(form_name, exc, outcome) from exc
        else:
            outcome.output = output
            self.session.debug_info[form_name]["output"] = output
            if output is not None:
                stream.add_line(output)
        finally:
            stream.add_break()
        outcome.state = SubmitState.RENDERED
        self.session.trace.record("submit_ok", form=form_name, fields=sorted(values))
        return outcome

    # -- history ------------------------------------------------------------

    def replay(self, search: Optional[str]) -> Dict[str, Any]:
        """Write the query string into every control of every form.

        Runs no validation and no computation.
        """
        query = parse_search(search)
        self.session.query.mark_applied(search)
        values: Dict[str, Any] = {}
        for entry in self.session.entries():
            values.update(self._populate(entry, query))
        self.session.trace.record("replay", search=self.session.query.last_applied)
        return values

    def toggle_help(self, n_clicks: Optional[int]) -> bool:
        return (n_clicks or 0) % 2 == 0

    # -- Dash callbacks -----------------------------------------------------

    def handle_submit(
        self, form_name: str, control_values: Sequence[Any], search: Optional[str]
    ) -> Tuple[List[str], Any, Any]:
        entry = self.session.get(form_name)
        submitted = {
            key: param.widget.raw_value(value)
            for (key, param), value in zip(entry.fields(), control_values)
        }
        try:
            outcome = self.submit(form_name, submitted, search)
        except ComputationError as exc:
            print("[f2f]", "computation failed:", exc)
            outcome = exc.outcome
        errors = [outcome.errors.get(key, "") for key in entry.keys()]
        if outcome.state is SubmitState.INVALID:
            return errors, dash.no_update, dash.no_update
        new_search = outcome.search if outcome.search is not None else dash.no_update
        return errors, entry.ostream.render(), new_search

    def handle_location(self, search: Optional[str], initial: bool) -> List[Any]:
        keys = [key for entry in self.session.entries() for key in entry.keys()]
        # Our own URL update comes back as a location change; skip it.
        if not initial and self.session.query.is_echo(search):
            return [dash.no_update] * len(keys)
        values = self.replay(search)
        return [values[key] for key in keys]

    def register_callbacks(self, app: dash.Dash) -> None:
        if self._bound:
            raise StructuralError("callbacks already registered")
        self._bound = True
        for entry in self.session.entries():
            self._register_submit(app, entry)

        outputs = [
            Output(component_id(config.INPUT_TYPE, entry.group.name, param.name), "value")
            for entry in self.session.entries()
            for param in entry.group
        ]
        if outputs:

            def _replay_location(search):
                initial = dash.callback_context.triggered_id is None
                return self.handle_location(search, initial)

            app.callback(outputs, [Input(config.LOCATION_ID, "search")])(_replay_location)

        app.callback(
            Output(component_id(config.HELP_TYPE, MATCH, MATCH), "hidden"),
            Input(component_id(config.HELP_TOGGLE_TYPE, MATCH, MATCH), "n_clicks"),
            prevent_initial_call=True,
        )(self.toggle_help)

    def _register_submit(self, app: dash.Dash, entry: FormEntry) -> None:
        group = entry.group.name
        inputs = [Input(component_id(config.RUN_TYPE, group), "n_clicks")]
        inputs += [
            Input(component_id(config.INPUT_TYPE, group, param.name), "n_submit")
            for param in entry.group
            if param.widget.kind == "text"
        ]
        states = [
            State(component_id(config.INPUT_TYPE, group, param.name), "value")
            for param in entry.group
        ]
        states.append(State(config.LOCATION_ID, "search"))
        outputs = [
            Output(component_id(config.ERROR_TYPE, group, param.name), "children")
            for param in entry.group
        ]
        outputs.append(Output(component_id(config.OSTREAM_TYPE, group), "children"))
        outputs.append(Output(config.LOCATION_ID, "search", allow_duplicate=True))
        n_inputs = len(inputs)

        def _on_submit(*args):
            control_values = args[n_inputs:-1]
            search = args[-1]
            errors, children, new_search = self.handle_submit(
                entry.form_name, control_values, search
            )
            return [*errors, children, new_search]

        app.callback(outputs, inputs, states, prevent_initial_call=True)(_on_submit)
