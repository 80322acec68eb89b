"""Statistics over a set of numeric votes.

All functions are pure. They expect a non-empty vote list; callers check for
the empty case first (``compute_statistics`` does it and returns ``None``).

Tie rules:
    * median  - true statistical median (mean of the two middle values).
    * mode    - among the most frequent values, the lowest one wins.
    * nearest_allowed - on equal distance the lower scale value wins.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pokerroom.core.exceptions import ValidationError

DEFAULT_STRONG_CONSENSUS_THRESHOLD = 70.0


def _require_votes(votes: Sequence[float]) -> List[float]:
    values = list(votes)
    if not values:
        raise ValidationError("No votes")
    return values


def average(votes: Sequence[float]) -> float:
    values = _require_votes(votes)
    return sum(values) / len(values)


def median(votes: Sequence[float]) -> float:
    values = sorted(_require_votes(votes))
    n = len(values)
    middle = n // 2
    if n % 2 == 1:
        return values[middle]
    return (values[middle - 1] + values[middle]) / 2


def mode(votes: Sequence[float]) -> float:
    counts = Counter(_require_votes(votes))
    best_count = max(counts.values())
    return min(value for value, count in counts.items() if count == best_count)


def minimum(votes: Sequence[float]) -> float:
    return min(_require_votes(votes))


def maximum(votes: Sequence[float]) -> float:
    return max(_require_votes(votes))


def nearest_allowed(value: float, allowed: Iterable[float]) -> float:
    """Return the scale member closest to ``value``."""
    scale = sorted(allowed)
    if not scale:
        raise ValidationError("Allowed scale is empty")
    best = scale[0]
    best_diff = abs(value - best)
    for candidate in scale[1:]:
        diff = abs(value - candidate)
        if diff < best_diff:
            best = candidate
            best_diff = diff
    return best


def consensus_percentage(votes: Sequence[float]) -> float:
    values = _require_votes(votes)
    counts = Counter(values)
    return max(counts.values()) / len(values) * 100


def has_strong_consensus(
    votes: Sequence[float], threshold: float = DEFAULT_STRONG_CONSENSUS_THRESHOLD
) -> bool:
    return consensus_percentage(votes) >= threshold


def distribution(votes: Sequence[float]) -> List[Tuple[float, int]]:
    """Ascending (value, count) pairs."""
    return sorted(Counter(_require_votes(votes)).items())


@dataclass(frozen=True)
class VoteStatistics:
    count: int
    average: float
    median: float
    mode: float
    min: float
    max: float
    consensus_percentage: float
    strong_consensus: bool
    suggested_estimate: float
    distribution: Tuple[Tuple[float, int], ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "average": round(self.average, 2),
            "median": self.median,
            "mode": self.mode,
            "min": self.min,
            "max": self.max,
            "consensus_percentage": round(self.consensus_percentage, 1),
            "strong_consensus": self.strong_consensus,
            "suggested_estimate": self.suggested_estimate,
            "distribution": [{"value": v, "count": c} for v, c in self.distribution],
        }


def compute_statistics(
    votes: Sequence[float],
    allowed: Iterable[float],
    threshold: float = DEFAULT_STRONG_CONSENSUS_THRESHOLD,
) -> Optional[VoteStatistics]:
    """Full statistics for a vote set, or None when there are no votes."""
    values = list(votes)
    if not values:
        return None
    mid = median(values)
    percentage = consensus_percentage(values)
    return VoteStatistics(
        count=len(values),
        average=average(values),
        median=mid,
        mode=mode(values),
        min=minimum(values),
        max=maximum(values),
        consensus_percentage=percentage,
        strong_consensus=percentage >= threshold,
        suggested_estimate=nearest_allowed(mid, allowed),
        distribution=tuple(distribution(values)),
    )
