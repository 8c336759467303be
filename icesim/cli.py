import argparse
import logging
import sys

from icesim.common.errors import InvalidParameter
from icesim.metrics.report import print_report
from icesim.simulator.config import SimulationConfig, load_yaml
from icesim.simulator.simulation_engine import run_simulation
from icesim.utils.config_iterator import config_variations_iterator


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Ice-cream shop queueing simulation")
    parser.add_argument('num_servers', nargs='?', type=int, help="number of clerks (default 3)")
    parser.add_argument('arrival_rate', nargs='?', type=float, help="arrivals per minute (default 0.5)")
    parser.add_argument('avg_service', nargs='?', type=float, help="mean service minutes (default 1.2)")
    parser.add_argument('price_per_scoop', nargs='?', type=float, help="revenue per scoop (default 3.0)")
    parser.add_argument('sim_minutes', nargs='?', type=float, help="simulation length in minutes (default 480)")
    parser.add_argument('--config', help="YAML config file, e.g. configs/config.yaml")
    parser.add_argument('--seed', type=int, help="random seed (default: random)")
    parser.add_argument('--log-level', default='WARNING', type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help="logging level (default WARNING)")
    return parser.parse_args(argv)


def build_configs(args):
    if args.config:
        configs = list(config_variations_iterator(load_yaml(args.config)))
    else:
        configs = [SimulationConfig()]

    # positional arguments win over the config file
    return [
        config.with_overrides(
            num_servers=args.num_servers,
            arrival_rate_per_min=args.arrival_rate,
            avg_service_min=args.avg_service,
            price_per_scoop=args.price_per_scoop,
            sim_minutes=args.sim_minutes,
            seed=args.seed,
        )
        for config in configs
    ]


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        configs = build_configs(args)
    except InvalidParameter as e:
        print(f"Invalid parameter: {e}", file=sys.stderr)
        return 2

    for config in configs:
        # each run gets its own engine and random source
        print_report(run_simulation(config))
    return 0


if __name__ == '__main__':
    sys.exit(main())
