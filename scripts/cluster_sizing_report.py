#!/usr/bin/env python3
"""
ABOUTME: Renders a ClusterSummary as a text report, JSON, YAML or CSV.
ABOUTME: Undefined ratios and statistics (empty cluster, no powered-on VMs) show as N/A.
"""

import csv
import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import yaml

from cluster_stats import ClusterSummary, Distribution

NOT_AVAILABLE = "N/A"


class Colors:
    RED = '\033[0;31m'
    GREEN = '\033[0;32m'
    YELLOW = '\033[1;33m'
    BLUE = '\033[0;34m'
    NC = '\033[0m'  # No Color


def format_value(value: Optional[Any], suffix: str = "") -> str:
    """Format a number for display, or N/A when it is undefined."""
    if value is None:
        return NOT_AVAILABLE
    if isinstance(value, float):
        return f"{value:,.2f}{suffix}"
    return f"{value:,}{suffix}"


def _overcommit_color(percent: Optional[float]) -> str:
    if percent is None:
        return Colors.NC
    if percent > 0:
        return Colors.RED
    if percent > -25:
        return Colors.YELLOW
    return Colors.GREEN


def _distribution_row(label: str, dist: Distribution, suffix: str = "") -> str:
    return (
        f"  {label:<22} "
        f"{format_value(dist.minimum, suffix):>12} "
        f"{format_value(dist.maximum, suffix):>12} "
        f"{format_value(dist.average, suffix):>12}"
    )


def render_text(summary: ClusterSummary, color: bool = True) -> str:
    """Fixed-width cluster sizing report."""

    def paint(text: str, code: str) -> str:
        return f"{code}{text}{Colors.NC}" if color else text

    lines = []
    lines.append("=" * 80)
    lines.append(f"Cluster Sizing Summary: {summary.cluster_name}")
    lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    lines.append("=" * 80)

    lines.append("\nInventory:")
    lines.append("─" * 80)
    lines.append(f"  Hosts:                         {format_value(summary.total_hosts):>12}")
    lines.append(
        f"  VMs:                           {format_value(summary.total_vms):>12}"
        f"   [{summary.powered_on_vms} on, {summary.powered_off_vms} off]"
    )
    lines.append(f"  VM to Host Ratio:              {format_value(summary.vm_to_host_ratio):>12}")

    cpu_color = _overcommit_color(summary.cpu_overcommit_percent)
    lines.append("\nCPU:")
    lines.append("─" * 80)
    lines.append(f"  Physical Cores:                {format_value(summary.total_host_cpu_cores):>12}")
    lines.append(f"  vCPUs (all VMs):               {format_value(summary.total_vcpu_all):>12}")
    lines.append(f"  vCPUs (powered on):            {format_value(summary.total_vcpu_powered_on):>12}")
    lines.append(f"  vCPU to Core Ratio:            {format_value(summary.vcpu_to_core_ratio):>12}")
    lines.append(
        "  CPU Overcommit:                "
        + paint(f"{format_value(summary.cpu_overcommit_percent, '%'):>12}", cpu_color)
    )

    mem_color = _overcommit_color(summary.memory_overcommit_percent)
    lines.append("\nMemory:")
    lines.append("─" * 80)
    lines.append(f"  Host Memory:                   {format_value(summary.host_memory_gb, ' GB'):>15}")
    lines.append(f"  vMemory (all VMs):             {format_value(summary.vmemory_all_gb, ' GB'):>15}")
    lines.append(f"  vMemory (powered on):          {format_value(summary.vmemory_powered_on_gb, ' GB'):>15}")
    lines.append(f"  vMemory to Host Ratio:         {format_value(summary.memory_to_host_ratio):>12}")
    lines.append(
        "  Memory Overcommit:             "
        + paint(f"{format_value(summary.memory_overcommit_percent, '%'):>12}", mem_color)
    )

    lines.append("\nStorage:")
    lines.append("─" * 80)
    lines.append(f"  vDisk (powered on):            {format_value(summary.vdisk_powered_on_gb, ' GB'):>15}")

    lines.append(f"\n{'Powered-On VM Distribution':^80}")
    lines.append("-" * 80)
    lines.append(f"  {'Metric':<22} {'Min':>12} {'Max':>12} {'Average':>12}")
    lines.append("-" * 80)
    lines.append(_distribution_row("vCPU", summary.vcpu_distribution))
    lines.append(_distribution_row("vMemory (GB)", summary.vmemory_distribution_gb))
    lines.append(_distribution_row("vDisk (GB)", summary.vdisk_distribution_gb))

    if summary.total_hosts == 0:
        lines.append("\n" + paint("⚠ No hosts in cluster: capacity ratios are N/A", Colors.YELLOW))
    else:
        if summary.total_host_cpu_cores == 0:
            lines.append(
                "\n" + paint("⚠ Hosts report 0 CPU cores (no hardware summary): CPU ratios are N/A", Colors.YELLOW)
            )
        if summary.host_memory_gb == 0:
            lines.append(
                "\n" + paint("⚠ Hosts report 0 GB memory (no hardware summary): memory ratios are N/A", Colors.YELLOW)
            )
    if summary.powered_on_vms == 0:
        lines.append("\n" + paint("⚠ No powered-on VMs: distribution statistics are N/A", Colors.YELLOW))

    return "\n".join(lines)


def render_json(summary: ClusterSummary) -> str:
    return json.dumps(summary.to_dict(), indent=2)


def render_yaml(summary: ClusterSummary) -> str:
    return yaml.safe_dump(summary.to_dict(), sort_keys=False)


def flatten_summary(summary: ClusterSummary) -> List[Tuple[str, Any]]:
    """(metric, value) pairs with distributions expanded to <name>.<stat>."""
    rows = []
    for key, value in summary.to_dict().items():
        if isinstance(value, dict):
            for stat, stat_value in value.items():
                rows.append((f"{key}.{stat}", stat_value))
        else:
            rows.append((key, value))
    return rows


def export_csv(summary: ClusterSummary, output_path: str) -> None:
    """Export the summary as Metric,Value rows."""
    with open(output_path, "w", newline="") as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(["Metric", "Value"])
        for metric, value in flatten_summary(summary):
            writer.writerow([metric, NOT_AVAILABLE if value is None else value])


RENDERERS: Dict[str, Any] = {
    "json": render_json,
    "yaml": render_yaml,
}
