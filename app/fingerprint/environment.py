"""Device environment descriptions read by the signal collector."""

import locale
import os
import platform
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

import httpx


@dataclass
class Navigator:
    """Browser navigator properties. None means the property is unavailable."""

    user_agent: str | None = None
    language: str | None = None
    languages: list[str] | None = None
    platform: str | None = None
    hardware_concurrency: int | None = None
    device_memory: float | None = None
    max_touch_points: int | None = None
    cookie_enabled: bool | None = None
    do_not_track: str | None = None
    plugins: list[str] | None = None


@dataclass
class Screen:
    """Screen geometry."""

    width: int | None = None
    height: int | None = None
    color_depth: int | None = None
    pixel_depth: int | None = None
    avail_width: int | None = None
    avail_height: int | None = None


@dataclass
class DeviceEnvironment:
    """Everything the collector may probe.

    `canvas` and `webgl` are probes: they may be absent or raise.
    `timezone_offset` follows the browser convention (minutes, UTC minus local).
    """

    navigator: Navigator | None = field(default_factory=Navigator)
    screen: Screen | None = field(default_factory=Screen)
    timezone: str | None = None
    timezone_offset: int | None = None
    canvas: Callable[[], str] | None = None
    webgl: Callable[[], str] | None = None


def _memory_gib() -> float | None:
    try:
        total = os.sysconf("SC_PAGE_SIZE") * os.sysconf("SC_PHYS_PAGES")
    except (AttributeError, ValueError, OSError):
        return None
    # Browsers report a coarse power of two, capped at 8
    gib = total / 2**30
    bucket = 0.25
    while bucket * 2 <= min(gib, 8):
        bucket *= 2
    return bucket


def _timezone_name() -> str | None:
    name = os.environ.get("TZ")
    if name:
        return name
    try:
        return os.path.realpath("/etc/localtime").split("zoneinfo/", 1)[1]
    except (IndexError, OSError):
        return time.tzname[0] or None


def _timezone_offset() -> int | None:
    offset = datetime.now().astimezone().utcoffset()
    return None if offset is None else -int(offset.total_seconds() // 60)


def host_environment() -> DeviceEnvironment:
    """Environment of the running process. Display signals stay unavailable."""
    try:
        lang, _ = locale.getlocale()
    except ValueError:
        lang = None
    lang = lang.replace("_", "-") if lang else None
    system = platform.system()
    return DeviceEnvironment(
        navigator=Navigator(
            user_agent=f"python-httpx/{httpx.__version__} ({system} {platform.release()}; {platform.machine()})",
            language=lang,
            languages=[lang] if lang else None,
            platform=f"{system} {platform.machine()}".strip() or None,
            hardware_concurrency=os.cpu_count(),
            device_memory=_memory_gib(),
            max_touch_points=0,
            cookie_enabled=False,
            do_not_track=None,
            plugins=None,
        ),
        screen=None,
        timezone=_timezone_name(),
        timezone_offset=_timezone_offset(),
    )
