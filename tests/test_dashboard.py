"""Tests for the dashboard's figure builders, fragments and callbacks."""

from __future__ import annotations

import math
from contextvars import copy_context
from dataclasses import replace
from types import SimpleNamespace

import numpy as np
import pytest
from dash import no_update
from dash._callback_context import context_value
from dash._utils import AttributeDict
from dash.exceptions import PreventUpdate

from esp32_radar.services import analysis
from esp32_radar.simulation.engine import HISTORY_LIMIT, TelemetryEngine, bump_firmware
from esp32_radar.simulation.stats import compute_stats
from esp32_radar.visualization import dash_app
from esp32_radar.visualization.dash_app import (
    _analysis_children, _details_children, _radar_figure, _signal_figure,
    _stats_children, _table_rows,
)


def _engine(count: int = 5) -> TelemetryEngine:
    return TelemetryEngine(count, rng=np.random.default_rng(21))


def _triggered_by(prop_id: str, callback, *args):
    """Run a Dash callback as if *prop_id* had fired it."""
    def run():
        context_value.set(AttributeDict(
            triggered_inputs=[{"prop_id": prop_id, "value": None}],
        ))
        return callback(*args)

    return copy_context().run(run)


@pytest.fixture
def engine(monkeypatch) -> TelemetryEngine:
    engine = _engine(4)
    monkeypatch.setattr(dash_app, "_engine", engine)
    return engine


class TestRadarFigure:
    def test_one_marker_per_device(self):
        engine = _engine()
        fig = _radar_figure(engine.devices)
        devices_trace = fig.data[1]
        assert list(devices_trace.customdata) == [d.id for d in engine.devices]
        assert len(devices_trace.x) == 5

    def test_selected_device_highlighted(self):
        engine = _engine()
        target = engine.devices[2].id
        fig = _radar_figure(engine.devices, selected_id=target)
        sizes = list(fig.data[1].marker.size)
        assert sizes[2] > sizes[0]

    def test_points_inside_canvas(self):
        engine = _engine(20)
        fig = _radar_figure(engine.devices)
        for x, y in zip(fig.data[1].x, fig.data[1].y):
            assert 0 <= x <= 600 and 0 <= y <= 600
            assert math.hypot(x - 300, y - 300) <= 260 + 1e-9

    def test_hover_without_distance_estimate(self):
        engine = _engine(2)
        devices = [replace(engine.devices[0], distance=-1.0), engine.devices[1]]
        hover = _radar_figure(devices).data[1].hovertext
        assert "Distance: Unknown" in hover[0]
        assert "-1.0" not in hover[0]
        assert f"Distance: ~{devices[1].distance:.1f} m" in hover[1]


class TestSignalFigure:
    def test_trace_per_device(self):
        engine = _engine(4)
        engine.run(3)
        fig = _signal_figure(engine)
        assert len(fig.data) == 4
        assert all(len(trace.x) == 4 for trace in fig.data)

    def test_plots_only_retained_window(self):
        engine = _engine(2)
        engine.run(HISTORY_LIMIT + 10)
        fig = _signal_figure(engine)
        for trace in fig.data:
            assert len(trace.x) == HISTORY_LIMIT
            assert trace.x[0] == 11
            assert trace.x[-1] == engine.round_count


class TestFragments:
    def test_table_rows(self):
        engine = _engine(3)
        rows = _table_rows(engine.devices)
        assert [r["id"] for r in rows] == [d.id for d in engine.devices]
        assert {r["quality"] for r in rows} <= {"strong", "fair", "weak"}

    def test_stats_cards(self):
        engine = _engine(3)
        assert len(_stats_children(compute_stats(engine.devices))) == 5

    def test_details_and_analysis(self):
        engine = _engine(2)
        device = engine.devices[0]
        assert _details_children(device)
        placeholder = _analysis_children(device)
        assert "Run Analysis" in placeholder.children
        engine.record_analysis(device.id, "Low risk.")
        log_div = _analysis_children(engine.get(device.id))
        assert log_div.children[1].children == "Low risk."


# ── Callbacks ────────────────────────────────────────────────────────

class TestSelectDevice:
    def test_radar_click(self, engine):
        target = engine.devices[1].id
        click = {"points": [{"curveNumber": 1, "customdata": target}]}
        out = _triggered_by("radar-graph.clickData",
                            dash_app.select_device, click, None, 0)
        assert out == target

    def test_table_row(self, engine):
        target = engine.devices[2].id
        cell = {"row": 2, "column": 0, "column_id": "name", "row_id": target}
        out = _triggered_by("device-table.active_cell",
                            dash_app.select_device, None, cell, 0)
        assert out == target

    def test_close_clears_selection(self, engine):
        out = _triggered_by("btn-close-details.n_clicks",
                            dash_app.select_device, None, None, 1)
        assert out is None

    def test_origin_click_ignored(self, engine):
        click = {"points": [{"curveNumber": 0}]}
        assert _triggered_by("radar-graph.clickData",
                             dash_app.select_device, click, None, 0) is None


class TestRefreshDashboard:
    def test_tick_advances_and_keeps_analysis_output(self, engine):
        selected = engine.devices[0].id
        out = _triggered_by("telemetry-interval.n_intervals",
                            dash_app.refresh_dashboard, 1, 0, selected)
        radar, stats, rows, signal, panel, body, analysis_out = out
        assert engine.round_count == 1
        assert [r["id"] for r in rows] == [d.id for d in engine.devices]
        assert panel == {}
        assert body
        assert analysis_out is no_update

    def test_selection_shows_recorded_analysis(self, engine):
        selected = engine.devices[1].id
        engine.record_analysis(selected, "Looks like a relay.")
        out = _triggered_by("selected-device.data",
                            dash_app.refresh_dashboard, 0, 0, selected)
        assert engine.round_count == 0
        assert out[6].children[1].children == "Looks like a relay."

    def test_no_selection_hides_panel(self, engine):
        out = _triggered_by("telemetry-interval.n_intervals",
                            dash_app.refresh_dashboard, 1, 0, None)
        assert out[4] == {"display": "none"}
        assert out[5] == []

    def test_rescan(self, engine):
        engine.run(3)
        _triggered_by("btn-reset.n_clicks", dash_app.refresh_dashboard, 0, 1, None)
        assert engine.round_count == 0
        assert len(engine.devices) == dash_app.settings.device_count


class TestActions:
    def test_run_analysis_stores_result(self, engine, monkeypatch):
        async def generate_content(*, model, contents):
            return SimpleNamespace(text="Probably a soil moisture sensor.")

        client = SimpleNamespace(aio=SimpleNamespace(
            models=SimpleNamespace(generate_content=generate_content)))
        monkeypatch.setattr(analysis, "make_client", lambda api_key=None: client)

        target = engine.devices[0].id
        out = _triggered_by("btn-analyze.n_clicks",
                            dash_app.run_analysis, 1, target)
        assert engine.get(target).ai_analysis == "Probably a soil moisture sensor."
        assert out.children[1].children == "Probably a soil moisture sensor."

    def test_run_analysis_without_selection(self, engine):
        with pytest.raises(PreventUpdate):
            _triggered_by("btn-analyze.n_clicks", dash_app.run_analysis, 1, None)

    def test_push_firmware_bumps_version(self, engine):
        target = engine.devices[2]
        _triggered_by("btn-firmware.n_clicks",
                      dash_app.push_firmware, 1, target.id)
        assert engine.get(target.id).firmware_version == bump_firmware(
            target.firmware_version)

    def test_push_firmware_unknown_device(self, engine):
        with pytest.raises(PreventUpdate):
            _triggered_by("btn-firmware.n_clicks",
                          dash_app.push_firmware, 1, "missing")

    def test_toggle_scanning(self):
        assert dash_app.toggle_scanning(1, False) == (
            True, "Resume", "SCANNER PAUSED")
        assert dash_app.toggle_scanning(2, True) == (
            False, "Pause", "SCANNER ACTIVE")
