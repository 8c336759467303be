"""
RandomSource - stochastic inputs of the shop model.

The engine draws every random quantity through a RandomSource instance it is
given, so tests can substitute a scripted source and parallel runs can each
own an independent generator.
"""

import math
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import numpy as np

from icesim.common.constants import DEFAULT_SCOOP_PROBABILITIES
from icesim.common.errors import InvalidParameter
from icesim.simulator.config import SimulationConfig, validate_probabilities


class RandomSource(ABC):
    """Supplier of i.i.d. draws for arrivals, service and order size."""

    @abstractmethod
    def next_inter_arrival_gap(self) -> float:
        """Minutes until the next customer arrives (> 0)."""

    @abstractmethod
    def next_service_duration(self) -> float:
        """Base service time in minutes, before scoop scaling (> 0)."""

    @abstractmethod
    def next_scoop_count(self) -> int:
        """Scoops ordered by a customer (1, 2 or 3)."""


class NumpyRandomSource(RandomSource):
    """
    RandomSource backed by a private numpy Generator.

    Inter-arrival gaps ~ Exponential(rate=arrival_rate_per_min),
    service durations ~ Exponential(mean=avg_service_min),
    scoop counts ~ categorical over {1, 2, 3}.
    """

    SCOOP_VALUES = np.array([1, 2, 3])

    def __init__(self,
                 arrival_rate_per_min: float,
                 avg_service_min: float,
                 scoop_probabilities: Sequence[float] = DEFAULT_SCOOP_PROBABILITIES,
                 seed: Optional[int] = None):
        """
        Initialize random source.

        Args:
            arrival_rate_per_min: Mean arrivals per minute (lambda > 0)
            avg_service_min: Mean service time in minutes (> 0)
            scoop_probabilities: Probabilities for 1, 2, 3 scoops
            seed: Random seed for reproducibility (None for random)

        Raises:
            InvalidParameter: If a rate/mean is not positive and finite or the
                probabilities are not a distribution
        """
        if not (arrival_rate_per_min > 0 and math.isfinite(arrival_rate_per_min)):
            raise InvalidParameter(f"Arrival rate must be positive and finite, got {arrival_rate_per_min}")
        if not (avg_service_min > 0 and math.isfinite(avg_service_min)):
            raise InvalidParameter(f"Mean service time must be positive and finite, got {avg_service_min}")

        self.arrival_rate_per_min = float(arrival_rate_per_min)
        self.avg_service_min = float(avg_service_min)
        self.scoop_probabilities = np.array(
            validate_probabilities(scoop_probabilities, expected_len=len(self.SCOOP_VALUES))
        )
        # choice() insists on an exact sum of 1
        self.scoop_probabilities = self.scoop_probabilities / self.scoop_probabilities.sum()
        self.random_seed = seed
        self._rng = np.random.default_rng(seed)

    @classmethod
    def from_config(cls, config: SimulationConfig) -> 'NumpyRandomSource':
        return cls(
            arrival_rate_per_min=config.arrival_rate_per_min,
            avg_service_min=config.avg_service_min,
            scoop_probabilities=config.scoop_probabilities,
            seed=config.seed,
        )

    def next_inter_arrival_gap(self) -> float:
        return float(self._rng.exponential(1.0 / self.arrival_rate_per_min))

    def next_service_duration(self) -> float:
        return float(self._rng.exponential(self.avg_service_min))

    def next_scoop_count(self) -> int:
        return int(self._rng.choice(self.SCOOP_VALUES, p=self.scoop_probabilities))

    def __repr__(self) -> str:
        return (f"NumpyRandomSource(lambda={self.arrival_rate_per_min}, "
                f"mean_service={self.avg_service_min}, seed={self.random_seed})")
