import logging
import math

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 10

UNIT_MS = {
    "ms": 1,
    "s": 1000,
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
}


def parse_window(value: str) -> int:
    """Parse ``"<n> <unit>"`` into whole seconds, e.g. ``"10 s"`` or ``"1 h"``.

    Never raises: anything unparsable falls back to DEFAULT_WINDOW_SECONDS so a
    bad setting can't take the limiter down with it.
    """
    parts = str(value).split()
    if not parts or len(parts) > 2:
        return _fallback(value)

    try:
        magnitude = float(parts[0])
    except ValueError:
        return _fallback(value)

    unit = parts[1] if len(parts) == 2 else "s"
    if not math.isfinite(magnitude) or magnitude <= 0 or unit not in UNIT_MS:
        return _fallback(value)

    seconds = magnitude * UNIT_MS[unit] / 1000
    if not math.isfinite(seconds):
        return _fallback(value)
    return max(1, math.ceil(seconds))


def _fallback(value: str) -> int:
    logger.warning("Invalid rate limit window %r, using %ds", value, DEFAULT_WINDOW_SECONDS)
    return DEFAULT_WINDOW_SECONDS
