"""
Plain-text rendering of a SimulationReport.
"""

from icesim.metrics.collector import SimulationReport


def format_report(report: SimulationReport) -> str:
    """Render the end-of-day report shown by the command line tool."""
    lines = [
        "=== Ice-Cream Shop Simulation Report ===",
        f"Servers (clerks): {report.num_servers}",
        f"Simulation minutes: {report.sim_minutes:g}",
        f"Customers served: {report.served_count}",
        f"Throughput (cust/min): {report.throughput_per_min:.6g}",
        f"Average wait (min): {report.average_wait:.3f}",
        f"Average service time (min): {report.average_service:.3f}",
        f"Total revenue: ${report.total_revenue:.3f}",
        f"Remaining in queue at end: {report.remaining_in_queue}",
        f"Total server idle time (min): {report.total_idle_time:.3f}",
    ]

    stats = report.wait_stats
    if stats and stats.get('count', 0) > 0:
        lines.append(
            f"Wait distribution (min): median={stats['median']:.3f} "
            f"p95={stats['p95']:.3f} max={stats['max']:.3f}"
        )

    lines.append("-" * 40)
    lines.append("Note: stochastic simulation -> run multiple times to estimate confidence.")
    return "\n".join(lines)


def print_report(report: SimulationReport) -> None:
    print(format_report(report))
