"""
tinyevo Ranking Module

This module defines how a population is ordered by fitness.

Classes:
    RankingMode: Enumeration of the comparator families (HIGHEST, LOWEST, CLOSEST)
"""

import math
from enum import Enum

# How close the best fitness must be to the target for a CLOSEST ranking to succeed
CLOSEST_TOLERANCE = 1e-4

class RankingMode(Enum):
    """
    The criterion used to rank agents and to decide whether a generation succeeded.

        HIGHEST: larger fitness is better;  success when best >= target
        LOWEST:  smaller fitness is better; success when best <= target
        CLOSEST: fitness nearer to the target is better; success when |best - target| < 1e-4
    """
    HIGHEST = "highest"
    LOWEST  = "lowest"
    CLOSEST = "closest"

    @classmethod
    def parse(cls, value: 'RankingMode | str') -> 'RankingMode':
        """
        Convert a RankingMode or its (case-insensitive) name into a RankingMode.

        Raises:
            ValueError: If 'value' does not name a ranking mode
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        allowed = ', '.join(mode.value for mode in cls)
        raise ValueError(f"Invalid ranking mode {value!r}. Allowed values: {allowed}")

    @property
    def sentinel(self) -> float:
        """The fitness that always loses selection under this mode."""
        return -math.inf if self is RankingMode.HIGHEST else math.inf

    def sort_key(self, fitness: float, target: float) -> float:
        """Ascending sort key: the best agent has the smallest key."""
        if self is RankingMode.HIGHEST:
            return -fitness
        if self is RankingMode.LOWEST:
            return fitness
        return abs(fitness - target)

    def is_success(self, best: float, target: float) -> bool:
        """Whether the best fitness of a generation reaches the target."""
        if self is RankingMode.HIGHEST:
            return best >= target
        if self is RankingMode.LOWEST:
            return best <= target
        return abs(best - target) < CLOSEST_TOLERANCE
