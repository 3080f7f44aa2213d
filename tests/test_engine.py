import dash
import pytest
from dash import dcc, html

from func_to_form.converters import compose, at_least, to_int
from func_to_form.engine import FormEngine, SubmitState, component_id, qualified_name
from func_to_form.errors import ComputationError, DefinitionError, StructuralError
from func_to_form.params import Param, ParamGroup
from func_to_form.session import AppSession
from func_to_form.urlsync import parse_search
from func_to_form.widgets import CheckBoxWidget, SelectWidget, TextWidget


class Recorder:
    def __init__(self, result=None, error=None):
        self.calls = []
        self.result = result
        self.error = error

    def __call__(self, inp, out):
        self.calls.append(dict(inp))
        out.add_line("ran")
        if self.error is not None:
            raise self.error
        return self.result


def _group(name="g"):
    return ParamGroup(
        name,
        [
            Param("n", TextWidget(compose(at_least(1), to_int)), description="a count"),
            Param("flag", CheckBoxWidget()),
        ],
    )


def _find(component, predicate):
    found = []
    if predicate(component):
        found.append(component)
    children = getattr(component, "children", None)
    if isinstance(children, (list, tuple)):
        for child in children:
            found.extend(_find(child, predicate))
    elif children is not None and hasattr(children, "children"):
        found.extend(_find(children, predicate))
    return found


def test_qualified_names() -> None:
    assert qualified_name("g") == "f2f.g"
    assert component_id("f2f-input", "g", "n") == {"type": "f2f-input", "form": "g", "param": "n"}


def test_create_form_registers_and_builds_controls(engine: FormEngine) -> None:
    layout = engine.create_form("box", _group(), Recorder())
    assert layout.id == "box"
    entry = engine.session.get("f2f.g")
    assert entry.keys() == ["f2f.g.n", "f2f.g.flag"]
    assert entry.ostream.name == "f2f.g.stdout"

    inputs = _find(layout, lambda c: isinstance(c, dcc.Input))
    assert [c.name for c in inputs] == ["f2f.g.n"]
    assert _find(layout, lambda c: isinstance(c, dcc.Checklist))
    helps = _find(layout, lambda c: getattr(c, "id", None) == component_id("f2f-help", "g", "n"))
    assert helps[0].hidden is True
    assert helps[0].children == "a count"
    buttons = _find(layout, lambda c: isinstance(c, html.Button) and c.children == "Run")
    assert buttons[0].id == component_id("f2f-run", "g")


def test_duplicate_form_names_fail(engine: FormEngine) -> None:
    engine.create_form("a", _group(), Recorder())
    with pytest.raises(DefinitionError):
        engine.create_form("b", _group(), Recorder())


def test_create_form_populates_from_current_query() -> None:
    engine = FormEngine(AppSession(initial_search="?f2f.g.n=7&f2f.g.flag=on"))
    engine.create_form("box", _group(), Recorder())
    controls = engine.session.get("f2f.g").controls
    assert controls["f2f.g.n"].value == "7"
    assert controls["f2f.g.flag"].value == ["on"]


def test_invalid_field_is_localized_and_blocks_everything(engine: FormEngine) -> None:
    func = Recorder()
    engine.create_form("box", _group(), func)
    outcome = engine.submit("f2f.g", {"f2f.g.n": "", "f2f.g.flag": "on"}, "?keep=1")
    assert outcome.state is SubmitState.INVALID
    assert outcome.errors == {"f2f.g.n": "empty value for f2f.g.n"}
    assert outcome.search is None
    assert outcome.values is None
    assert func.calls == []
    assert engine.session.query.last_applied == ""
    assert engine.session.get("f2f.g").ostream.render() == []


def test_every_field_is_read_even_after_a_failure(engine: FormEngine) -> None:
    group = ParamGroup("m", [Param("a", TextWidget(to_int)), Param("b", TextWidget(to_int))])
    engine.create_form("box", group, Recorder())
    outcome = engine.submit("f2f.m", {"f2f.m.a": "x", "f2f.m.b": "y"})
    assert set(outcome.errors) == {"f2f.m.a", "f2f.m.b"}


def test_valid_submit_computes_renders_and_updates_url(engine: FormEngine) -> None:
    func = Recorder(result=42)
    engine.create_form("box", _group(), func)
    outcome = engine.submit("f2f.g", {"f2f.g.n": "3", "f2f.g.flag": "on"}, "?lang=en")
    assert outcome.state is SubmitState.RENDERED
    assert func.calls == [{"n": 3, "flag": True}]
    assert parse_search(outcome.search) == {"lang": "en", "f2f.g.n": "3", "f2f.g.flag": "on"}
    stream = engine.session.get("f2f.g").ostream
    assert stream.lane_kinds() == ["log", "separator"]
    assert [line.children for line in stream.render()[0].children] == ["ran", "42"]
    assert engine.session.debug_info["f2f.g"] == {"input": {"n": 3, "flag": True}, "output": 42}


def test_clear_output_flag(engine: FormEngine) -> None:
    keep = ParamGroup("keep", [Param("x", TextWidget())])
    engine.create_form("a", keep, Recorder(), clear_output=False)
    engine.create_form("b", _group(), Recorder())
    for _ in range(2):
        engine.submit("f2f.keep", {"f2f.keep.x": "1"})
        engine.submit("f2f.g", {"f2f.g.n": "1"})
    assert engine.session.get("f2f.keep").ostream.lane_kinds() == ["log", "separator", "log", "separator"]
    assert engine.session.get("f2f.g").ostream.lane_kinds() == ["log", "separator"]


def test_computation_error_is_rendered_then_reraised(engine: FormEngine) -> None:
    engine.create_form("box", _group(), Recorder(error=ValueError("bad input")))
    with pytest.raises(ComputationError) as excinfo:
        engine.submit("f2f.g", {"f2f.g.n": "2"}, "")
    exc = excinfo.value
    assert isinstance(exc.__cause__, ValueError)
    assert exc.outcome.search == "?f2f.g.n=2"
    stream = engine.session.get("f2f.g").ostream
    assert stream.lane_kinds() == ["log", "separator"]
    last_line = stream.render()[0].children[-1]
    assert last_line.children == "ValueError: bad input"
    assert "f2f-log-line-error" in last_line.className
    assert engine.session.trace.records("computation_error")[0]["error"] == "ValueError: bad input"


def test_non_validation_read_error_is_fatal(engine: FormEngine) -> None:
    def broken(text):
        raise KeyError("oops")

    func = Recorder()
    engine.create_form("box", ParamGroup("b", [Param("x", TextWidget(broken))]), func)
    with pytest.raises(KeyError):
        engine.submit("f2f.b", {"f2f.b.x": "1"})
    assert func.calls == []


def test_unknown_form_is_structural(engine: FormEngine) -> None:
    with pytest.raises(StructuralError):
        engine.submit("f2f.nope", {})


def test_submit_rejects_fields_of_other_forms(engine: FormEngine) -> None:
    func = Recorder()
    engine.create_form("box", _group(), func)
    engine.create_form("other", ParamGroup("other", [Param("x", TextWidget())]), func)
    before = engine.session.query.last_applied
    with pytest.raises(StructuralError, match="f2f.other.x"):
        engine.submit("f2f.g", {"f2f.g.n": "1", "f2f.other.x": "9"}, "")
    assert func.calls == []
    assert engine.session.query.last_applied == before


def test_unchecked_default_on_checkbox_survives_replay(engine: FormEngine) -> None:
    func = Recorder()
    group = ParamGroup("q", [Param("a", TextWidget(default="1")), Param("plot", CheckBoxWidget(default=True))])
    engine.create_form("box", group, func)
    outcome = engine.submit("f2f.q", {}, "")
    assert func.calls == [{"a": "1", "plot": False}]
    assert outcome.search == "?f2f.q.plot=off"
    assert engine.replay(engine.session.query.last_applied) == {"f2f.q.a": "", "f2f.q.plot": []}
    assert engine.session.get("f2f.q").controls["f2f.q.plot"].value == []

    checked = engine.submit("f2f.q", {"f2f.q.plot": "on"}, outcome.search)
    assert checked.search == "?f2f.q.plot=on"
    assert engine.replay(checked.search)["f2f.q.plot"] == ["on"]


def test_repeated_identical_submit_does_not_touch_url(engine: FormEngine) -> None:
    engine.create_form("box", _group(), Recorder())
    first = engine.submit("f2f.g", {"f2f.g.n": "1"}, "")
    second = engine.submit("f2f.g", {"f2f.g.n": "1"}, first.search)
    assert first.search == "?f2f.g.n=1"
    assert second.search is None


def test_back_navigation_restores_controls_without_computing(engine: FormEngine) -> None:
    func = Recorder()
    engine.create_form("box", _group(), func)
    engine.create_form("other", ParamGroup("o", [Param("s", SelectWidget({"x": 1, "y": 2}))]), func)
    first = engine.submit("f2f.g", {"f2f.g.n": "1"}, "")
    engine.submit("f2f.g", {"f2f.g.n": "5", "f2f.g.flag": "on"}, first.search)
    calls = len(func.calls)

    values = engine.replay(first.search)
    assert values == {"f2f.g.n": "1", "f2f.g.flag": [], "f2f.o.s": "x"}
    assert engine.session.get("f2f.g").controls["f2f.g.n"].value == "1"
    assert len(func.calls) == calls
    assert engine.session.query.last_applied == first.search

    # After going back, resubmitting the newer values must push the URL again.
    again = engine.submit("f2f.g", {"f2f.g.n": "5", "f2f.g.flag": "on"}, first.search)
    assert parse_search(again.search) == {"f2f.g.n": "5", "f2f.g.flag": "on"}


def test_replay_of_empty_query_restores_initial_values(engine: FormEngine) -> None:
    group = ParamGroup("d", [Param("t", TextWidget()), Param("c", CheckBoxWidget(default=True))])
    engine.create_form("box", group, Recorder())
    engine.submit("f2f.d", {"f2f.d.t": "x"})
    assert engine.replay("") == {"f2f.d.t": "", "f2f.d.c": ["on"]}


def test_handle_submit_maps_control_values(engine: FormEngine) -> None:
    func = Recorder(result="done")
    engine.create_form("box", _group(), func)
    errors, children, search = engine.handle_submit("f2f.g", ["4", ["on"]], "?lang=en")
    assert errors == ["", ""]
    assert func.calls == [{"n": 4, "flag": True}]
    assert isinstance(children, list) and len(children) == 2
    assert parse_search(search)["f2f.g.n"] == "4"

    errors, children, search = engine.handle_submit("f2f.g", ["0", []], search)
    assert errors[0] == "0 should be ≥ 1"
    assert children is dash.no_update
    assert search is dash.no_update


def test_handle_submit_surfaces_computation_errors(engine: FormEngine, capsys) -> None:
    engine.create_form("box", _group(), Recorder(error=RuntimeError("x")))
    errors, children, search = engine.handle_submit("f2f.g", ["2", []], "")
    assert search == "?f2f.g.n=2"
    assert children[0].children[-1].children == "RuntimeError: x"
    assert "[f2f]" in capsys.readouterr().out


def test_handle_location_skips_own_echo(engine: FormEngine) -> None:
    engine.create_form("box", _group(), Recorder())
    assert engine.handle_location("?f2f.g.n=3", initial=True) == ["3", []]
    assert engine.handle_location("?f2f.g.n=3", initial=False) == [dash.no_update, dash.no_update]
    assert engine.handle_location("?f2f.g.n=9", initial=False) == ["9", []]


def test_toggle_help(engine: FormEngine) -> None:
    assert engine.toggle_help(1) is False
    assert engine.toggle_help(2) is True
    assert engine.toggle_help(None) is True


def test_register_callbacks_wires_forms_once(engine: FormEngine) -> None:
    app = dash.Dash(__name__)
    layout = engine.create_form("box", _group(), Recorder())
    app.layout = html.Div([engine.location(), layout])
    engine.register_callbacks(app)
    assert len(app.callback_map) == 3
    with pytest.raises(StructuralError):
        engine.register_callbacks(app)
    with pytest.raises(StructuralError):
        engine.create_form("late", ParamGroup("late", []), Recorder())
