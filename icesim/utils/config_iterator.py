import copy
from itertools import product
from typing import Iterator, Dict, Any

from icesim.common.errors import InvalidParameter
from icesim.simulator.config import SimulationConfig, simulation_section


def config_variations_iterator(cfg: Dict[str, Any]) -> Iterator[SimulationConfig]:
    """Yield one SimulationConfig per combination of the listed variable_fields."""
    params = simulation_section(cfg)
    variable_fields = params.get('variable_fields', []) or []
    if not variable_fields:
        yield SimulationConfig.from_config(params)
        return

    for field_name in variable_fields:
        if not isinstance(params.get(field_name), list):
            raise InvalidParameter(f"variable field '{field_name}' must hold a list of values")

    parameter_list = [params[field_name] for field_name in variable_fields]
    for combo in product(*parameter_list):
        params_copy = copy.deepcopy(params)
        del params_copy['variable_fields']
        for i, field_name in enumerate(variable_fields):
            params_copy[field_name] = combo[i]
        yield SimulationConfig.from_config(params_copy)
