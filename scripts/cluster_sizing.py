#!/usr/bin/env python3
"""
ABOUTME: Cluster capacity statistics for sizing tools (vCPU:core, overcommit, distributions).
ABOUTME: Collects hosts and VMs of one vSphere cluster, filters VMs, and reports the aggregates.

Usage:
    cluster_sizing.py --cluster mgmt-cluster-01                 # Text report from vCenter
    cluster_sizing.py --cluster mgmt-cluster-01 --format json   # Structured output
    cluster_sizing.py --exclude vcf-installer,test-vm           # Exclude VMs by name
    cluster_sizing.py --include-file sizing-vms.txt             # Only VMs listed in a file
    cluster_sizing.py --save-inventory inventory.yaml           # Capture inventory for offline runs
    cluster_sizing.py --inventory-file inventory.yaml           # Size from a capture, no vCenter

Examples:
    # Cluster from config/cluster-sizing.yaml, text report
    cluster_sizing.py

    # Export results for the sizing spreadsheet
    cluster_sizing.py --cluster wld01-cl01 --export-csv wld01-sizing.csv

    # Re-run sizing on a capture without vCenter access
    cluster_sizing.py --inventory-file wld01.yaml --exclude wld01-edge01 --format yaml
"""

import argparse
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

import urllib3
import yaml

from cluster_inventory import InventoryCollector, load_inventory, progress, save_inventory
from cluster_sizing_report import RENDERERS, export_csv, render_text
from cluster_stats import (
    ClusterSummary,
    HostRecord,
    VmRecord,
    compute_cluster_summary,
    filter_vms,
    load_name_list,
)
from sizing_secrets import get_vcenter_password

DEFAULT_CONFIG = "config/cluster-sizing.yaml"


class ClusterSizingTool:
    """Compute sizing statistics for a vSphere cluster."""

    def __init__(self, config_path: str, collector: Optional[InventoryCollector] = None):
        """Initialize with configuration file path."""
        self.config_path = Path(config_path)
        self.config = self._load_config()
        self.collector = collector

    def _load_config(self) -> Dict:
        """Load connection and sizing defaults from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}\n"
                f"Expected location: {DEFAULT_CONFIG}"
            )

        with open(self.config_path) as f:
            return yaml.safe_load(f) or {}

    @property
    def sizing_config(self) -> Dict:
        return self.config.get("sizing") or {}

    def default_cluster(self) -> Optional[str]:
        return self.sizing_config.get("cluster")

    def default_include(self) -> List[str]:
        return list(self.sizing_config.get("include") or [])

    def default_exclude(self) -> List[str]:
        return list(self.sizing_config.get("exclude") or [])

    def connect_vcenter(self) -> None:
        """Open the vCenter session used for inventory collection."""
        vcenter_config = self.config.get("vcenter")
        if not vcenter_config or not vcenter_config.get("hostname"):
            raise ValueError(f"Missing 'vcenter.hostname' in {self.config_path}")

        password = get_vcenter_password(
            self.config_path.resolve().parent.parent, vcenter_config.get("password")
        )

        verify_ssl = bool(vcenter_config.get("verify_ssl", False))
        if not verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        progress(f"Connecting to vCenter: {vcenter_config['hostname']}")
        self.collector = InventoryCollector(
            hostname=vcenter_config["hostname"],
            username=vcenter_config.get("username", "administrator@vsphere.local"),
            password=password,
            port=int(vcenter_config.get("port", 443)),
            verify_ssl=verify_ssl,
        )
        self.collector.connect()
        progress("✓ Connected to vCenter successfully\n")

    def disconnect_vcenter(self) -> None:
        """Disconnect from vCenter Server."""
        if self.collector:
            self.collector.disconnect()

    def fetch_inventory(self, cluster_id: str):
        """Return (hosts, vms) for the cluster from vCenter."""
        if not self.collector:
            raise RuntimeError("Not connected to vCenter")

        hosts = self.collector.fetch_hosts(cluster_id)
        vms = self.collector.fetch_vms(cluster_id)
        progress(f"✓ Collected {len(hosts)} hosts and {len(vms)} VMs from cluster '{cluster_id}'")
        return hosts, vms

    def compute_cluster_summary(
        self,
        cluster_id: str,
        include_names: Optional[Iterable[str]] = None,
        exclude_names: Optional[Iterable[str]] = None,
    ) -> ClusterSummary:
        """Fetch, filter and aggregate one cluster."""
        hosts, vms = self.fetch_inventory(cluster_id)
        return summarize(cluster_id, hosts, vms, include_names, exclude_names)


def summarize(
    cluster_id: str,
    hosts: List[HostRecord],
    vms: List[VmRecord],
    include_names: Optional[Iterable[str]] = None,
    exclude_names: Optional[Iterable[str]] = None,
) -> ClusterSummary:
    """Apply the VM filter and aggregate."""
    selected = filter_vms(vms, include_names, exclude_names)
    if len(selected) != len(vms):
        progress(f"ℹ VM filter kept {len(selected)} of {len(vms)} VMs")
    return compute_cluster_summary(cluster_id, hosts, selected)


def parse_names(value: Optional[str]) -> List[str]:
    """Split a comma-separated list of VM names."""
    if not value:
        return []
    return [name.strip() for name in value.split(",") if name.strip()]


def collect_names(
    inline: Optional[str],
    names_file: Optional[str],
    defaults: Iterable[str] = (),
) -> Set[str]:
    """Merge names from the command line, a names file and config defaults."""
    names = set(defaults)
    names.update(parse_names(inline))
    if names_file:
        names.update(load_name_list(names_file))
    return names


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute vSphere cluster sizing statistics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG,
        help="Path to sizing configuration file",
    )
    parser.add_argument(
        "--cluster",
        help="Cluster name (defaults to sizing.cluster in the config file)",
    )
    parser.add_argument(
        "--include",
        help="Comma-separated VM names to include (all others are ignored)",
    )
    parser.add_argument(
        "--exclude",
        help="Comma-separated VM names to exclude",
    )
    parser.add_argument(
        "--include-file",
        metavar="FILE",
        help="File with VM names to include, one per line",
    )
    parser.add_argument(
        "--exclude-file",
        metavar="FILE",
        help="File with VM names to exclude, one per line",
    )
    parser.add_argument(
        "--inventory-file",
        metavar="FILE",
        help="Size from a saved inventory snapshot instead of vCenter",
    )
    parser.add_argument(
        "--save-inventory",
        metavar="FILE",
        help="Save the collected (unfiltered) inventory to a YAML snapshot",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json", "yaml"],
        default="text",
        help="Report format (default: text)",
    )
    parser.add_argument(
        "--output",
        metavar="FILE",
        help="Write the report to a file instead of stdout",
    )
    parser.add_argument(
        "--export-csv",
        metavar="FILE",
        help="Also export the summary to a CSV file",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored text output",
    )
    return parser


def run(args: argparse.Namespace) -> int:
    tool: Optional[ClusterSizingTool] = None

    try:
        if args.inventory_file:
            cluster_id, hosts, vms = load_inventory(args.inventory_file)
            if args.cluster and args.cluster != cluster_id:
                raise ValueError(
                    f"Inventory file {args.inventory_file} was captured for cluster "
                    f"'{cluster_id}', not '{args.cluster}'"
                )
            progress(f"✓ Loaded {len(hosts)} hosts and {len(vms)} VMs from {args.inventory_file}")
            include_defaults: List[str] = []
            exclude_defaults: List[str] = []
            if Path(args.config).exists():
                tool = ClusterSizingTool(args.config)
                include_defaults = tool.default_include()
                exclude_defaults = tool.default_exclude()
        else:
            tool = ClusterSizingTool(args.config)
            cluster_id = args.cluster or tool.default_cluster()
            if not cluster_id:
                print("Error: no cluster given; use --cluster or set sizing.cluster in the config")
                return 1
            include_defaults = tool.default_include()
            exclude_defaults = tool.default_exclude()

            tool.connect_vcenter()
            hosts, vms = tool.fetch_inventory(cluster_id)

        if args.save_inventory:
            save_inventory(args.save_inventory, cluster_id, hosts, vms)
            progress(f"✓ Inventory saved to: {args.save_inventory}")

        include_names = collect_names(args.include, args.include_file, include_defaults)
        exclude_names = collect_names(args.exclude, args.exclude_file, exclude_defaults)
        summary = summarize(cluster_id, hosts, vms, include_names, exclude_names)

        if args.format == "text":
            color = not args.no_color and not args.output and sys.stdout.isatty()
            report = render_text(summary, color=color)
        else:
            report = RENDERERS[args.format](summary)

        if args.output:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(report if report.endswith("\n") else report + "\n")
            progress(f"✓ Report written to: {args.output}")
        else:
            print(report)

        if args.export_csv:
            export_csv(summary, args.export_csv)
            progress(f"✓ Summary exported to: {args.export_csv}")

        return 0

    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user")
        return 130
    except Exception as e:
        print(f"\nError: {e}")
        return 1
    finally:
        if tool:
            tool.disconnect_vcenter()


def main():
    """Main entry point for the cluster sizing CLI."""
    args = build_parser().parse_args()
    sys.exit(run(args))


if __name__ == "__main__":
    main()
