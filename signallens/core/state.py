"""Map per-band color ratios to a signal-state label."""

from __future__ import annotations

from signallens.core.types import GO, STATE_SEPARATOR, STOP, UNKNOWN, WAIT, ColorRatios

DEFAULT_THRESHOLD = 0.4


def resolve(ratios: ColorRatios, threshold: float = DEFAULT_THRESHOLD) -> str:
    """Return the label for `ratios`.

    A band matches when its ratio is strictly above `threshold`. Matches are
    collected in the fixed order red, green, yellow; several matches are joined
    verbatim (e.g. "STOP & WAIT") rather than disambiguated.
    """

    matches: list[str] = []
    if ratios.red > threshold:
        matches.append(STOP)
    if ratios.green > threshold:
        matches.append(GO)
    if ratios.yellow > threshold:
        matches.append(WAIT)

    if not matches:
        return UNKNOWN
    return STATE_SEPARATOR.join(matches)
