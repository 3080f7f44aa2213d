"""Dash demo: three generated forms sharing one address bar."""

from __future__ import annotations

import os
from pathlib import Path

import dash
from dash import Input, Output, dcc, html

from func_to_form import demos
from func_to_form.engine import FormEngine
from func_to_form.session import AppSession

_TRACE_DIR = os.environ.get("F2F_TRACE_DIR")

_PANEL_STYLE = {
    "padding": "16px 24px",
    "marginBottom": "24px",
    "border": "1px solid #dddddd",
    "borderRadius": "12px",
}


def build_app(session: AppSession) -> dash.Dash:
    engine = FormEngine(session)
    app = dash.Dash(__name__, title="func-to-form")

    forms = [
        ("quadratic-panel", "Quadratic", demos.QUADRATIC_GROUP, demos.quadratic, True),
        ("stats-panel", "List statistics", demos.STATS_GROUP, demos.list_stats, False),
        ("matrix-panel", "Matrix", demos.MATRIX_GROUP, demos.matrix_summary, True),
    ]
    panels = []
    for container_id, title, group, func, clear_output in forms:
        panels.append(
            html.Section(
                [
                    html.H2(title),
                    engine.create_form(container_id, group, func, clear_output=clear_output),
                ],
                style=_PANEL_STYLE,
            )
        )

    app.layout = html.Div(
        [
            engine.location(),
            html.H1("func-to-form"),
            *panels,
            html.Button("Download trace (CSV)", id="btn-download-trace", n_clicks=0),
            dcc.Download(id="download-trace"),
        ],
        style={"maxWidth": "960px", "margin": "0 auto"},
    )
    engine.register_callbacks(app)

    @app.callback(
        Output("download-trace", "data"),
        Input("btn-download-trace", "n_clicks"),
        prevent_initial_call=True,
    )
    def _handle_download_trace(n_clicks):
        csv_content = session.trace.to_csv()
        if not n_clicks or csv_content is None:
            return dash.no_update
        return dcc.send_string(csv_content, filename=f"session_{session.trace.session_id}.csv")

    return app


session = AppSession(trace_dir=Path(_TRACE_DIR) if _TRACE_DIR else None)
app = build_app(session)
server = app.server


if __name__ == "__main__":
    app.run(debug=True)
