"""Weighted lottery over an experiment's variations."""
import random
from typing import Callable, Sequence, TypeVar

# Zero-argument callable returning a uniform float in [0, 1)
RandomSource = Callable[[], float]

V = TypeVar("V")


def select_variation(variations: Sequence[V], random_source: RandomSource = random.random) -> V:
    """
    Pick one variation with probability proportional to its weight.

    Each variation owns the half-open band [cum, cum + weight) of the range
    [0, total_weight). A draw that lands exactly on a boundary belongs to the
    next variation, so weights [1, 3] map r=0 to the first variation and r=1
    to the second.

    Args:
        variations: Live variations of one experiment, in a stable order.
            Any object with an integer ``weight`` attribute works.
        random_source: Uniform generator over [0, 1). Inject a fixed function
            in tests to hit exact band boundaries.

    Returns:
        The chosen variation. When every weight is zero the first variation
        is returned.

    Raises:
        ValueError: If ``variations`` is empty or any weight is negative.

    Example:
        >>> select_variation(variations, random_source=lambda: 0.25)
    """
    if not variations:
        raise ValueError("select_variation requires at least one variation")

    weights = [v.weight for v in variations]
    if any(w < 0 for w in weights):
        raise ValueError("Variation weights must be non-negative")

    total_weight = sum(weights)
    if total_weight == 0:
        return variations[0]

    r = random_source() * total_weight

    cumulative = 0
    for variation, weight in zip(variations, weights):
        if cumulative + weight > r:
            return variation
        cumulative += weight

    # Only reachable if the source returned a value >= 1.0 or float rounding
    # pushed r up to total_weight; the draw belongs to the top band.
    return next(v for v, w in zip(reversed(variations), reversed(weights)) if w > 0)
