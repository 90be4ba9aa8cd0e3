"""Dash UI for the ESP32 radar dashboard.

Run with:
    python -m esp32_radar.visualization.dash_app

Opens at http://127.0.0.1:7860
"""

from __future__ import annotations

import asyncio
from typing import Any, Sequence

import pandas as pd
import plotly.graph_objects as go

import dash
from dash import dcc, html, ctx, dash_table, Input, Output, State, no_update
from dash.exceptions import PreventUpdate

from ..config import Settings
from ..core.device import ConnectionStatus, Device
from ..core.geometry import MAX_DISTANCE_M, RADAR_RADIUS, radar_coordinates
from ..logger import configure_logging, get_logger
from ..services.analysis import analyze_device_signature
from ..simulation.engine import TelemetryEngine
from ..simulation.stats import RadarStats, compute_stats, signal_quality

settings = Settings.from_env()
configure_logging(settings.log_level)
log = get_logger("dashboard")

# ═══════════════════════════════════════════════════════════════════════
#  Dark plotly theme
# ═══════════════════════════════════════════════════════════════════════

_LAYOUT_DEFAULTS = dict(
    template="plotly_dark",
    paper_bgcolor="#0f172a",
    plot_bgcolor="#0f172a",
    font=dict(family="Inter, -apple-system, sans-serif", color="#e2e8f0"),
    margin=dict(l=10, r=10, t=40, b=10),
    uirevision="stable",
)

_COLORS = {
    "online": "#10b981",
    "offline": "#ef4444",
    "unstable": "#f59e0b",
    "selected": "#f59e0b",
    "origin": "#3b82f6",
    "grid": "#1e293b",
    "grid_edge": "#334155",
}

_STATUS_COLORS = {
    ConnectionStatus.CONNECTED: _COLORS["online"],
    ConnectionStatus.DISCONNECTED: _COLORS["offline"],
    ConnectionStatus.UNSTABLE: _COLORS["unstable"],
}

_QUALITY_COLORS = {"strong": "#10b981", "fair": "#f59e0b", "weak": "#ef4444"}


# ═══════════════════════════════════════════════════════════════════════
#  Plotly rendering helpers
# ═══════════════════════════════════════════════════════════════════════


def _radar_shapes() -> list[dict]:
    c = RADAR_RADIUS
    shapes = []
    for frac, width, color in (
        (0.25, 1, _COLORS["grid"]),
        (0.5, 1, _COLORS["grid"]),
        (0.75, 1, _COLORS["grid"]),
        (0.95, 2, _COLORS["grid_edge"]),
    ):
        r = c * frac
        shapes.append(dict(
            type="circle", xref="x", yref="y",
            x0=c - r, y0=c - r, x1=c + r, y1=c + r,
            line=dict(color=color, width=width),
        ))
    shapes.append(dict(type="line", x0=c, y0=0, x1=c, y1=2 * c,
                       line=dict(color=_COLORS["grid"], width=1)))
    shapes.append(dict(type="line", x0=0, y0=c, x1=2 * c, y1=c,
                       line=dict(color=_COLORS["grid"], width=1)))
    return shapes


def _distance_label(device: Device) -> str:
    return f"~{device.distance:.1f} m" if device.has_distance else "Unknown"


def _radar_figure(devices: Sequence[Device], selected_id: str | None = None) -> go.Figure:
    xs, ys = radar_coordinates(
        [d.distance for d in devices], [d.angle for d in devices]
    )
    colors = [
        _COLORS["selected"] if d.id == selected_id else _STATUS_COLORS[d.status]
        for d in devices
    ]
    sizes = [22 if d.id == selected_id else 16 for d in devices]
    hover_text = [
        f"<b>{d.name}</b><br>"
        f"{d.mac}<br>"
        f"Signal: <b>{d.rssi} dBm</b><br>"
        f"Distance: {_distance_label(d)}<br>"
        f"Status: {d.status.value}"
        for d in devices
    ]

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=[RADAR_RADIUS], y=[RADAR_RADIUS],
        mode="markers",
        marker=dict(size=14, color=_COLORS["origin"],
                    line=dict(width=8, color="rgba(59,130,246,0.2)")),
        hovertext=["You (origin)"], hoverinfo="text",
        showlegend=False,
    ))
    fig.add_trace(go.Scatter(
        x=xs.tolist(), y=ys.tolist(),
        mode="markers",
        marker=dict(size=sizes, color=colors,
                    line=dict(width=1, color="rgba(255,255,255,0.3)")),
        customdata=[d.id for d in devices],
        hovertext=hover_text, hoverinfo="text",
        showlegend=False,
    ))

    span = [0, 2 * RADAR_RADIUS]
    fig.update_layout(
        title=dict(text=f"Radar -- edge {MAX_DISTANCE_M:.0f} m", font=dict(size=14)),
        shapes=_radar_shapes(),
        xaxis=dict(range=span, visible=False, scaleanchor="y", constrain="domain"),
        yaxis=dict(range=span[::-1], visible=False, constrain="domain"),
        height=560,
        clickmode="event",
        **_LAYOUT_DEFAULTS,
    )
    return fig


def _signal_figure(engine: TelemetryEngine) -> go.Figure:
    """RSSI history per device over the engine's retained window."""
    names = {d.id: d.name for d in engine.devices}
    first = engine.first_round
    rows = [
        {"tick": first + i, "id": did, "rssi": rssi}
        for did, series in engine.rssi_series().items()
        for i, rssi in enumerate(series)
    ]
    df = pd.DataFrame(rows, columns=["tick", "id", "rssi"])

    fig = go.Figure()
    # Names repeat once the pool wraps, so group by id
    for did, group in df.groupby("id", sort=False):
        fig.add_trace(go.Scatter(
            x=group["tick"], y=group["rssi"], mode="lines", name=names[did],
        ))
    fig.update_layout(
        title=dict(text="Signal History", font=dict(size=14)),
        xaxis=dict(title="Tick", showgrid=False),
        yaxis=dict(title="RSSI (dBm)", range=[-96, -29], showgrid=False),
        height=260,
        **_LAYOUT_DEFAULTS,
    )
    return fig


# ═══════════════════════════════════════════════════════════════════════
#  HTML fragments
# ═══════════════════════════════════════════════════════════════════════


def _stat_card(label: str, value: str, accent: str) -> html.Div:
    return html.Div([
        html.Div(value, className="stat-value", style={"color": accent}),
        html.Div(label, className="stat-label"),
    ], className="stat-card")


def _stats_children(stats: RadarStats) -> list[html.Div]:
    threat_color = {"Low": "#10b981", "Medium": "#f59e0b", "High": "#ef4444"}
    return [
        _stat_card("Devices Detected", str(stats.total_devices), "#60a5fa"),
        _stat_card("Online Now", str(stats.online_count), "#34d399"),
        _stat_card("Avg Signal", f"{stats.avg_signal} dBm", "#fbbf24"),
        _stat_card("Open Ports > 2", str(stats.high_risk_count), "#f87171"),
        _stat_card("Threat Level", stats.threat_level,
                   threat_color[stats.threat_level]),
    ]


def _table_rows(devices: Sequence[Device]) -> list[dict[str, Any]]:
    return [
        {
            "id": d.id,
            "name": d.name,
            "mac": d.mac,
            "type": d.type.value,
            "rssi": d.rssi,
            "quality": signal_quality(d.rssi),
            "status": d.status.value,
        }
        for d in devices
    ]


def _chips(values: Sequence[Any], className: str) -> Any:
    if not values:
        return html.Span("None detected", className="muted")
    return html.Div([html.Span(str(v), className=className) for v in values],
                    className="chip-row")


def _details_children(device: Device) -> list[Any]:
    battery = f"{device.battery_level}%" if device.battery_level is not None else "N/A"
    return [
        html.H3(device.name),
        html.Div(device.mac, className="mono muted"),
        html.Div(device.status.value, className="status-line",
                 style={"color": _STATUS_COLORS[device.status]}),
        html.Div([
            _stat_card("Signal", f"{device.rssi} dBm",
                       _QUALITY_COLORS[signal_quality(device.rssi)]),
            _stat_card("Distance", _distance_label(device), "#e2e8f0"),
            _stat_card("Type", device.type.value, "#e2e8f0"),
            _stat_card("Battery", battery, "#e2e8f0"),
        ], className="detail-grid"),
        html.H4("Technical Telemetry"),
        html.Div([html.Span("IP Address", className="muted"),
                  html.Span(device.ip_address or "Unknown", className="mono")],
                 className="kv"),
        html.Div([html.Span("Firmware", className="muted"),
                  html.Span(device.firmware_version or "Unknown", className="mono")],
                 className="kv"),
        html.Div("Open Ports", className="muted"),
        _chips(device.open_ports, "chip chip-port"),
        html.Div("Detected Services", className="muted"),
        _chips(device.services, "chip chip-service"),
    ]


def _analysis_children(device: Device | None) -> Any:
    if device is None or not device.ai_analysis:
        return html.Div(
            'Click "Run Analysis" to profile this device using Google Gemini.',
            className="analysis-placeholder",
        )
    return html.Div([
        html.Div("Analysis Log", className="analysis-header"),
        html.Div(device.ai_analysis),
    ], className="analysis-log")


# ═══════════════════════════════════════════════════════════════════════
#  Server-side state (single user)
# ═══════════════════════════════════════════════════════════════════════

_engine: TelemetryEngine | None = None


def _get_engine() -> TelemetryEngine:
    global _engine
    if _engine is None:
        _engine = TelemetryEngine(count=settings.device_count)
    return _engine


# ═══════════════════════════════════════════════════════════════════════
#  Dash app + dark theme
# ═══════════════════════════════════════════════════════════════════════

app = dash.Dash(
    __name__,
    title="ESP32 Radar Command",
    suppress_callback_exceptions=True,
)
server = app.server

app.index_string = """<!DOCTYPE html>
<html>
<head>
    {%metas%}
    <title>{%title%}</title>
    {%favicon%}
    {%css%}
    <link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&display=swap" rel="stylesheet">
    <style>
        :root {
            --bg-base: #0f172a;
            --bg-surface: #1e293b;
            --border: #334155;
            --text-primary: #e2e8f0;
            --text-muted: #94a3b8;
            --accent: #6366f1;
            --accent-green: #10b981;
            --accent-red: #ef4444;
            --radius: 8px;
        }
        body { margin: 0; background: var(--bg-base); color: var(--text-primary);
               font-family: Inter, -apple-system, sans-serif; }
        .app-header { height: 64px; display: flex; align-items: center;
                      justify-content: space-between; padding: 0 24px;
                      border-bottom: 1px solid var(--bg-surface); }
        .app-header h1 { font-size: 1.25em; margin: 0; }
        .app-header h1 span { color: #818cf8; }
        .scanner-badge { color: var(--accent-green); font-family: monospace; }
        .layout { display: flex; gap: 16px; padding: 16px 24px; }
        .main-area { flex: 1; min-width: 0; }
        .stats-bar { display: grid; grid-template-columns: repeat(5, 1fr); gap: 12px;
                     margin-bottom: 12px; }
        .stat-card { background: var(--bg-surface); border: 1px solid var(--border);
                     border-radius: var(--radius); padding: 12px; }
        .stat-value { font-size: 1.4em; font-weight: 700; }
        .stat-label { font-size: 0.75em; text-transform: uppercase;
                      letter-spacing: 0.05em; color: var(--text-muted); }
        .control-bar { display: flex; gap: 8px; margin-bottom: 8px; }
        button { background: var(--bg-surface); color: var(--text-primary);
                 border: 1px solid var(--border); border-radius: var(--radius);
                 padding: 6px 14px; cursor: pointer; }
        button.primary { background: var(--accent); border-color: var(--accent); }
        button.danger { border-color: var(--accent-red); color: var(--accent-red); }
        .details-panel { width: 380px; background: var(--bg-surface);
                         border-left: 1px solid var(--border); padding: 20px;
                         border-radius: var(--radius); }
        .detail-grid { display: grid; grid-template-columns: 1fr 1fr; gap: 8px;
                       margin: 12px 0; }
        .kv { display: flex; justify-content: space-between;
              border-bottom: 1px solid var(--border); padding: 6px 0; }
        .mono { font-family: monospace; }
        .muted { color: var(--text-muted); }
        .chip-row { display: flex; flex-wrap: wrap; gap: 6px; margin: 4px 0 10px; }
        .chip { padding: 2px 8px; border-radius: 4px; font-family: monospace;
                font-size: 0.8em; }
        .chip-port { background: rgba(49,46,129,0.5); color: #a5b4fc; }
        .chip-service { background: rgba(6,78,59,0.3); color: #6ee7b7; }
        .analysis-log { background: var(--bg-base); border: 1px solid rgba(99,102,241,0.3);
                        border-radius: var(--radius); padding: 12px; line-height: 1.5; }
        .analysis-header { color: #a5b4fc; font-family: monospace; font-size: 0.75em;
                           text-transform: uppercase; margin-bottom: 6px; }
        .analysis-placeholder { text-align: center; padding: 24px; color: var(--text-muted);
                                border: 1px dashed var(--border); border-radius: var(--radius); }
    </style>
</head>
<body>
    {%app_entry%}
    <footer>
        {%config%}
        {%scripts%}
        {%renderer%}
    </footer>
</body>
</html>
"""


def _header() -> html.Div:
    return html.Div([
        html.H1(["ESP32 ", html.Span("Radar"), " Command"]),
        html.Div("SCANNER ACTIVE", id="scanner-badge", className="scanner-badge"),
    ], className="app-header")


def _device_table() -> dash_table.DataTable:
    return dash_table.DataTable(
        id="device-table",
        columns=[
            {"name": "Device Name", "id": "name"},
            {"name": "MAC Address", "id": "mac"},
            {"name": "Type", "id": "type"},
            {"name": "Signal (dBm)", "id": "rssi"},
            {"name": "Quality", "id": "quality"},
            {"name": "Status", "id": "status"},
        ],
        data=[],
        style_table={"overflowX": "auto"},
        style_header={"backgroundColor": "#0f172a", "color": "#e2e8f0",
                      "fontWeight": "600"},
        style_cell={"backgroundColor": "#1e293b", "color": "#94a3b8",
                    "textAlign": "left", "padding": "6px 10px",
                    "border": "1px solid #334155"},
        style_data_conditional=[
            {"if": {"filter_query": f'{{quality}} = "{q}"', "column_id": ["rssi", "quality"]},
             "color": color}
            for q, color in _QUALITY_COLORS.items()
        ] + [
            {"if": {"filter_query": '{status} = "Connected"', "column_id": "status"},
             "color": "#34d399"},
        ],
        page_size=10,
    )


def _details_panel() -> html.Div:
    return html.Div([
        html.Div([
            html.Button("✕", id="btn-close-details", n_clicks=0),
        ], style={"textAlign": "right"}),
        html.Div(id="details-body"),
        html.Div([
            html.Button("Push Firmware Update", id="btn-firmware", n_clicks=0),
            html.Button("Run Analysis", id="btn-analyze", className="primary", n_clicks=0),
        ], className="control-bar", style={"marginTop": "16px"}),
        html.H4("Gemini AI Analysis"),
        dcc.Loading(html.Div(id="analysis-output"), type="dot"),
    ], id="details-panel", className="details-panel", style={"display": "none"})


app.layout = html.Div([
    _header(),
    html.Div([
        html.Div([
            html.Div(id="stats-bar", className="stats-bar"),
            html.Div([
                html.Button("Pause", id="btn-pause", n_clicks=0),
                html.Button("Rescan", id="btn-reset", className="danger", n_clicks=0),
            ], className="control-bar"),
            dcc.Graph(id="radar-graph", config={"displayModeBar": False}),
            _device_table(),
            dcc.Graph(id="signal-graph", config={"displayModeBar": False}),
        ], className="main-area"),
        _details_panel(),
    ], className="layout"),

    # Hidden components
    dcc.Interval(id="telemetry-interval", interval=settings.tick_interval_ms,
                 disabled=False),
    dcc.Store(id="selected-device", data=None),
])


# ═══════════════════════════════════════════════════════════════════════
#  Callbacks
# ═══════════════════════════════════════════════════════════════════════

# ── CB1: Device selection ────────────────────────────────────────────

@app.callback(
    Output("selected-device", "data"),
    Input("radar-graph", "clickData"),
    Input("device-table", "active_cell"),
    Input("btn-close-details", "n_clicks"),
    prevent_initial_call=True,
)
def select_device(click_data, active_cell, _close_clicks):
    triggered = ctx.triggered_id
    if triggered == "btn-close-details":
        return None
    if triggered == "radar-graph" and click_data:
        point = click_data["points"][0]
        return point.get("customdata")
    if triggered == "device-table" and active_cell:
        return active_cell.get("row_id")
    raise PreventUpdate


# ── CB2: Telemetry tick / rescan / selection refresh ─────────────────

@app.callback(
    Output("radar-graph", "figure"),
    Output("stats-bar", "children"),
    Output("device-table", "data"),
    Output("signal-graph", "figure"),
    Output("details-panel", "style"),
    Output("details-body", "children", allow_duplicate=True),
    Output("analysis-output", "children", allow_duplicate=True),
    Input("telemetry-interval", "n_intervals"),
    Input("btn-reset", "n_clicks"),
    Input("selected-device", "data"),
    prevent_initial_call="initial_duplicate",
)
def refresh_dashboard(_ticks, _reset_clicks, selected_id):
    engine = _get_engine()
    triggered = ctx.triggered_id

    if triggered == "telemetry-interval":
        engine.step()
    elif triggered == "btn-reset":
        engine.reset(settings.device_count)

    devices = engine.devices
    selected = engine.get(selected_id)

    if selected is None:
        panel_style, body, analysis = {"display": "none"}, [], no_update
    else:
        panel_style = {}
        body = _details_children(selected)
        # Keep an in-flight analysis spinner/result untouched on plain ticks
        analysis = (
            _analysis_children(selected)
            if triggered != "telemetry-interval" else no_update
        )

    return (
        _radar_figure(devices, selected_id),
        _stats_children(compute_stats(devices)),
        _table_rows(devices),
        _signal_figure(engine),
        panel_style,
        body,
        analysis,
    )


# ── CB3: Gemini analysis ─────────────────────────────────────────────

@app.callback(
    Output("analysis-output", "children", allow_duplicate=True),
    Input("btn-analyze", "n_clicks"),
    State("selected-device", "data"),
    prevent_initial_call=True,
)
def run_analysis(n_clicks, selected_id):
    engine = _get_engine()
    device = engine.get(selected_id)
    if not n_clicks or device is None:
        raise PreventUpdate

    text = asyncio.run(analyze_device_signature(
        device, api_key=settings.api_key, model=settings.model,
    ))
    engine.record_analysis(device.id, text)
    return _analysis_children(engine.get(device.id))


# ── CB4: Firmware push ───────────────────────────────────────────────

@app.callback(
    Output("details-body", "children", allow_duplicate=True),
    Input("btn-firmware", "n_clicks"),
    State("selected-device", "data"),
    prevent_initial_call=True,
)
def push_firmware(n_clicks, selected_id):
    engine = _get_engine()
    if not n_clicks or engine.get(selected_id) is None:
        raise PreventUpdate
    engine.update_firmware(selected_id)
    return _details_children(engine.get(selected_id))


# ── CB5: Pause / resume scanning ─────────────────────────────────────

@app.callback(
    Output("telemetry-interval", "disabled"),
    Output("btn-pause", "children"),
    Output("scanner-badge", "children"),
    Input("btn-pause", "n_clicks"),
    State("telemetry-interval", "disabled"),
    prevent_initial_call=True,
)
def toggle_scanning(_n_clicks, is_disabled):
    paused = not is_disabled
    if paused:
        return True, "Resume", "SCANNER PAUSED"
    return False, "Pause", "SCANNER ACTIVE"


# ═══════════════════════════════════════════════════════════════════════
#  Entry point
# ═══════════════════════════════════════════════════════════════════════

def main() -> None:
    log.info("Starting dashboard on %s:%d", settings.host, settings.port)
    app.run(host=settings.host, debug=settings.debug, port=settings.port)


if __name__ == "__main__":
    main()
