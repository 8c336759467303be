"""
SimulationConfig - parameters for a single simulation run.
"""

import math
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional, Tuple

import yaml

from icesim.common.constants import DEFAULT_SCOOP_PROBABILITIES
from icesim.common.errors import InvalidParameter


def validate_probabilities(probabilities, expected_len: int = 3, tolerance: float = 1e-6) -> Tuple[float, ...]:
    """
    Check that probabilities form a distribution over 1..expected_len scoops.

    Returns:
        The probabilities as a tuple of floats

    Raises:
        InvalidParameter: On wrong length, negative/NaN entries or a sum != 1
    """
    try:
        probs = tuple(float(p) for p in probabilities)
    except (TypeError, ValueError) as e:
        raise InvalidParameter(f"Scoop probabilities must be numbers, got {probabilities!r}") from e

    if len(probs) != expected_len:
        raise InvalidParameter(
            f"Expected {expected_len} scoop probabilities, got {len(probs)}"
        )
    if any(math.isnan(p) or p < 0 for p in probs):
        raise InvalidParameter(f"Scoop probabilities must be non-negative, got {probs}")
    if abs(sum(probs) - 1.0) > tolerance:
        raise InvalidParameter(f"Scoop probabilities must sum to 1, got {sum(probs)}")
    return probs


def simulation_section(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Parameters of a config: its 'simulation' section, or the mapping itself
    when there is no such section.
    """
    if not config:
        return {}
    section = config.get('simulation', config)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise InvalidParameter("'simulation' section must be a mapping of parameter names to values")
    return section


@dataclass(frozen=True)
class SimulationConfig:
    """
    Configuration of one simulated shop day.

    Attributes:
        num_servers: Number of clerks serving in parallel
        arrival_rate_per_min: Mean arrivals per minute (lambda)
        avg_service_min: Mean service time before scoop scaling (minutes)
        price_per_scoop: Revenue per scoop sold
        sim_minutes: Simulation horizon (minutes)
        scoop_probabilities: P(1 scoop), P(2 scoops), P(3 scoops)
        seed: Random seed for reproducibility (None for random)
    """
    num_servers: int = 3
    arrival_rate_per_min: float = 0.5
    avg_service_min: float = 1.2
    price_per_scoop: float = 3.0
    sim_minutes: float = 8 * 60
    scoop_probabilities: Tuple[float, ...] = field(default=DEFAULT_SCOOP_PROBABILITIES)
    seed: Optional[int] = None

    def __post_init__(self):
        """Validate parameters before any simulation starts."""
        if isinstance(self.num_servers, bool) or int(self.num_servers) != self.num_servers:
            raise InvalidParameter(f"Number of servers must be an integer, got {self.num_servers!r}")
        if self.num_servers < 1:
            raise InvalidParameter(f"Number of servers must be at least 1, got {self.num_servers}")
        if not (self.arrival_rate_per_min > 0 and math.isfinite(self.arrival_rate_per_min)):
            raise InvalidParameter(f"Arrival rate must be positive and finite, got {self.arrival_rate_per_min}")
        if not (self.avg_service_min > 0 and math.isfinite(self.avg_service_min)):
            raise InvalidParameter(f"Mean service time must be positive and finite, got {self.avg_service_min}")
        if not (self.price_per_scoop >= 0 and math.isfinite(self.price_per_scoop)):
            raise InvalidParameter(f"Price per scoop must be non-negative and finite, got {self.price_per_scoop}")
        if not (self.sim_minutes >= 0 and math.isfinite(self.sim_minutes)):
            raise InvalidParameter(f"Simulation length must be non-negative and finite, got {self.sim_minutes}")

        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, 'num_servers', int(self.num_servers))
        object.__setattr__(self, 'scoop_probabilities', validate_probabilities(self.scoop_probabilities))

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'SimulationConfig':
        """
        Create SimulationConfig from a configuration dict.

        Args:
            config: Either the parameters themselves or a dict with a
                   'simulation' section, e.g.
                   {
                       'simulation': {
                           'num_servers': 3,
                           'arrival_rate_per_min': 0.5,
                           ...
                       }
                   }

        Returns:
            Validated SimulationConfig (missing keys take their defaults)
        """
        section = simulation_section(config)
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(section) - known - {'variable_fields'})
        if unknown:
            raise InvalidParameter(f"Unknown simulation parameters: {', '.join(unknown)}")

        kwargs = {k: v for k, v in section.items() if k in known}
        if kwargs.get('scoop_probabilities') is not None:
            kwargs['scoop_probabilities'] = tuple(kwargs['scoop_probabilities'])
        try:
            return cls(**kwargs)
        except TypeError as e:
            raise InvalidParameter(str(e)) from e

    @classmethod
    def from_yaml(cls, path: str) -> 'SimulationConfig':
        """Load a config file (see configs/config.yaml)."""
        return cls.from_config(load_yaml(path))

    def with_overrides(self, **overrides) -> 'SimulationConfig':
        """Copy with the given parameters replaced; None values are ignored."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_yaml(path: str) -> Dict[str, Any]:
    """Read a YAML config file; an empty file yields an empty dict."""
    with open(path, 'r', encoding='utf-8') as file:
        config = yaml.safe_load(file)
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise InvalidParameter(f"Config file {path} must contain a mapping at top level")
    return config
