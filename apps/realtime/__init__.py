"""Realtime fan-out of order lifecycle events (kitchen display, dashboards)."""
