"""Pure mapping helpers used by entities to present readings."""
from __future__ import annotations

from .const import (
    BAND_CRITICAL,
    BAND_HEALTHY,
    BAND_WARNING,
    COLOR_CRITICAL,
    COLOR_HEALTHY,
    COLOR_NEUTRAL,
    COLOR_WARNING,
    HEALTH_STATE_COLORS,
    HEALTHY_THRESHOLD,
    WARNING_THRESHOLD,
)

BAND_COLORS = {
    BAND_HEALTHY: COLOR_HEALTHY,
    BAND_WARNING: COLOR_WARNING,
    BAND_CRITICAL: COLOR_CRITICAL,
}

BAND_LABELS = {
    BAND_HEALTHY: "SYSTEM HEALTHY",
    BAND_WARNING: "ATTENTION NEEDED",
    BAND_CRITICAL: "SERVICE REQUIRED",
}


def celsius_to_fahrenheit(celsius: float) -> float:
    """(c * 9/5) + 32, one decimal."""
    return round((float(celsius) * 9 / 5) + 32, 1)


def fahrenheit_to_celsius(fahrenheit: float) -> float:
    """Inverse of celsius_to_fahrenheit. Only used to check the 0.1 round trip."""
    return round((float(fahrenheit) - 32) * 5 / 9, 1)


def health_band(score: float) -> str:
    # Strict comparisons: 80 is warning, 60 is critical.
    if score > HEALTHY_THRESHOLD:
        return BAND_HEALTHY
    if score > WARNING_THRESHOLD:
        return BAND_WARNING
    return BAND_CRITICAL


def health_color(score: float) -> str:
    return BAND_COLORS[health_band(score)]


def health_label(score: float) -> str:
    return BAND_LABELS[health_band(score)]


def health_state_color(state: str | None) -> str:
    """Color for a backend health state; unknown states get the neutral color."""
    return HEALTH_STATE_COLORS.get(state, COLOR_NEUTRAL)


def compressor_label(running: bool) -> str:
    return "ACTIVE" if running else "IDLE"


def activity_label(live_temp: float | None) -> str:
    """Fleet rows count a device as active while it reports a positive temperature."""
    if live_temp is not None and live_temp > 0:
        return "ACTIVE"
    return "OFFLINE"
