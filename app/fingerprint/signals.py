"""Signal collector - reads device attributes into a Signal Set."""

from collections.abc import Callable
from typing import Any

from loguru import logger

from app.fingerprint.environment import DeviceEnvironment

SignalSet = dict[str, str | int | float | bool]

# Sentinel per signal. Every key is always present in a Signal Set.
SIGNAL_DEFAULTS: dict[str, str | int | bool] = {
    "userAgent": "",
    "language": "",
    "languages": "",
    "platform": "",
    "hardwareConcurrency": 0,
    "deviceMemory": 0,
    "maxTouchPoints": 0,
    "screenWidth": 0,
    "screenHeight": 0,
    "screenColorDepth": 0,
    "screenPixelDepth": 0,
    "availWidth": 0,
    "availHeight": 0,
    "timezone": "",
    "timezoneOffset": 0,
    "canvas": "",
    "cookieEnabled": False,
    "doNotTrack": "",
    "plugins": "",
    "webgl": "",
}

MINIMAL_SIGNALS = ("userAgent", "language", "platform", "screenWidth", "screenHeight", "timezoneOffset")


def _probe(name: str, read: Callable[[], Any]) -> Any:
    """Read one signal; any failure or missing value yields its sentinel."""
    default = SIGNAL_DEFAULTS[name]
    try:
        value = read()
    except Exception as e:
        logger.debug("Signal {} unavailable: {}", name, e)
        return default
    if value is None or value == "":
        return default
    if isinstance(default, bool):
        return bool(value)
    if isinstance(default, int) and not isinstance(value, (int, float)):
        return default
    return value


def _joined(values: list[str] | None) -> str:
    return ",".join(str(v) for v in values) if values else ""


def _canvas(env: DeviceEnvironment) -> str:
    return env.canvas() if env.canvas else ""


def _webgl(env: DeviceEnvironment) -> str:
    return env.webgl() if env.webgl else ""


def _readers(env: DeviceEnvironment) -> dict[str, Callable[[], Any]]:
    return {
        "userAgent": lambda: env.navigator.user_agent,
        "language": lambda: env.navigator.language,
        "languages": lambda: _joined(env.navigator.languages),
        "platform": lambda: env.navigator.platform,
        "hardwareConcurrency": lambda: env.navigator.hardware_concurrency,
        "deviceMemory": lambda: env.navigator.device_memory,
        "maxTouchPoints": lambda: env.navigator.max_touch_points,
        "screenWidth": lambda: env.screen.width,
        "screenHeight": lambda: env.screen.height,
        "screenColorDepth": lambda: env.screen.color_depth,
        "screenPixelDepth": lambda: env.screen.pixel_depth,
        "availWidth": lambda: env.screen.avail_width,
        "availHeight": lambda: env.screen.avail_height,
        "timezone": lambda: env.timezone,
        "timezoneOffset": lambda: env.timezone_offset,
        "canvas": lambda: _canvas(env),
        "cookieEnabled": lambda: env.navigator.cookie_enabled,
        "doNotTrack": lambda: env.navigator.do_not_track,
        "plugins": lambda: _joined(env.navigator.plugins),
        "webgl": lambda: _webgl(env),
    }


def collect_signals(env: DeviceEnvironment) -> SignalSet:
    """Collect the full Signal Set. Never raises for a single unavailable signal."""
    readers = _readers(env)
    return {name: _probe(name, readers[name]) for name in SIGNAL_DEFAULTS}


def collect_minimal_signals(env: DeviceEnvironment) -> SignalSet:
    """Reduced Signal Set used when full collection fails."""
    readers = _readers(env)
    return {name: _probe(name, readers[name]) for name in MINIMAL_SIGNALS}
