"""
Guidance categories for CPReady.

The recommended compression rate is 100 to 120 bpm. Category names are the
instruction given to the rescuer, so a slow cadence maps to FASTER.
"""

import math
from enum import Enum


class GuidanceCategory(str, Enum):
    MUCH_FASTER = "much_faster"
    FASTER = "faster"
    FINE = "fine"
    SLOWER = "slower"
    MUCH_SLOWER = "much_slower"


# Band edges in Hz
MUCH_FASTER_BELOW = 70 / 60
FASTER_BELOW = 100 / 60
SLOWER_ABOVE = 120 / 60
MUCH_SLOWER_ABOVE = 150 / 60

_INSTRUCTIONS = {
    GuidanceCategory.MUCH_FASTER: "Push much faster!",
    GuidanceCategory.FASTER: "Push faster",
    GuidanceCategory.FINE: "Good rhythm, keep going",
    GuidanceCategory.SLOWER: "Push slower",
    GuidanceCategory.MUCH_SLOWER: "Push much slower!",
}


def classify(hz: float) -> GuidanceCategory:
    """
    Map a compression frequency to the instruction for the rescuer.

    Band edges belong to the band nearer FINE: exactly 100 and 120 bpm are
    FINE, exactly 70 bpm is FASTER and exactly 150 bpm is SLOWER. NaN means
    no usable cadence and is treated like a stopped rescuer.
    """
    if math.isnan(hz) or hz < MUCH_FASTER_BELOW:
        return GuidanceCategory.MUCH_FASTER
    if hz < FASTER_BELOW:
        return GuidanceCategory.FASTER
    if hz > MUCH_SLOWER_ABOVE:
        return GuidanceCategory.MUCH_SLOWER
    if hz > SLOWER_ABOVE:
        return GuidanceCategory.SLOWER
    return GuidanceCategory.FINE


def instruction_for(category: GuidanceCategory) -> str:
    """User-facing text for a guidance category."""
    return _INSTRUCTIONS[category]
