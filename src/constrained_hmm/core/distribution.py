"""Nested probability tables used by both model types.

A distribution maps a context key to a mapping from target key to weight.
Inner mappings keep their keys even when weights are zeroed, because
"present with zero weight" and "absent" mean different things to the
pruning phases of the constrained model.
"""

import copy
from typing import Dict, Iterable, Optional, Set

import numpy as np

from ..exceptions import ProbabilityLookupError

Distribution = Dict[str, Dict[str, float]]

NORMALIZATION_TOLERANCE = 1e-9


def increment(distribution: Distribution, context: str, target: str, amount: float = 1.0) -> None:
    """Add ``amount`` to the count of ``target`` after ``context``."""
    targets = distribution.setdefault(context, {})
    targets[target] = targets.get(target, 0.0) + amount


def normalize(distribution: Distribution) -> None:
    """Divide every context's weights by their total, in place.

    Contexts whose weights sum to zero are left untouched.
    """
    for targets in distribution.values():
        total = sum(targets.values())
        if total == 0.0:
            continue
        for target in targets:
            targets[target] /= total


def copy_distribution(distribution: Distribution) -> Distribution:
    """Deep copy sharing no mutable state with the source."""
    return copy.deepcopy(distribution)


def context_totals(distribution: Distribution) -> Dict[str, float]:
    """Total outgoing weight of every context."""
    return {context: sum(targets.values()) for context, targets in distribution.items()}


def zero_sum_contexts(distribution: Distribution) -> Set[str]:
    """Contexts whose outgoing weights are all zero."""
    return {context for context, total in context_totals(distribution).items() if total == 0.0}


def zero_targets(distribution: Distribution, dead: Iterable[str]) -> None:
    """Zero, in every context, the weight of each target listed in ``dead``."""
    dead = set(dead)
    for targets in distribution.values():
        for target in targets:
            if target in dead:
                targets[target] = 0.0


def draw_key(targets: Dict[str, float], rng: np.random.Generator) -> Optional[str]:
    """Draw a target key by cumulative weight.

    Targets are scanned in the mapping's iteration order (insertion order for
    a ``dict``), accumulating weights until the running sum exceeds a uniform
    value from ``rng``. Reproducible output therefore needs both a seeded
    generator and a fixed iteration order.

    Parameters
    ----------
    targets : Dict[str, float]
        Target key to weight; weights are expected to sum to 1.
    rng : np.random.Generator
        Random source owned by the caller.

    Returns
    -------
    Optional[str]
        The drawn key, or ``None`` when no target has positive weight.
    """
    threshold = rng.random()
    running = 0.0
    last_positive = None
    for key, weight in targets.items():
        if weight <= 0.0:
            continue
        running += weight
        last_positive = key
        if running > threshold:
            return key
    # Rounding can leave the running sum a hair below the threshold.
    return last_positive


def validate_distribution(distribution: Distribution,
                          tolerance: float = NORMALIZATION_TOLERANCE) -> Dict[str, any]:
    """
    Check that every context is either normalized or entirely zero.

    Parameters
    ----------
    distribution : Distribution
        Table to check
    tolerance : float
        Allowed deviation of a context total from 1.0

    Returns
    -------
    Dict[str, any]
        Validation results with the offending contexts listed under
        ``'errors'``
    """
    results = {
        'n_contexts': len(distribution),
        'n_eliminated': 0,
        'errors': []
    }

    for context, total in context_totals(distribution).items():
        if total == 0.0:
            results['n_eliminated'] += 1
        elif abs(total - 1.0) > tolerance:
            results['errors'].append(f"Context {context!r}: weights sum to {total!r}")

    for context, targets in distribution.items():
        negative = [target for target, weight in targets.items() if weight < 0.0]
        if negative:
            results['errors'].append(f"Context {context!r}: negative weights for {negative}")

    results['valid'] = not results['errors']
    return results


def lookup(distribution: Distribution, context: str, target: str) -> float:
    """Weight of ``context -> target``.

    Raises
    ------
    ProbabilityLookupError
        If the context or the target is absent. A present target with zero
        weight returns ``0.0``.
    """
    try:
        return distribution[context][target]
    except KeyError as exc:
        raise ProbabilityLookupError(
            f"No probability recorded for {context!r} -> {target!r}"
        ) from exc
