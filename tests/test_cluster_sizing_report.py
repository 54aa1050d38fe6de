from __future__ import annotations

import csv
import json

import yaml

from cluster_sizing_report import (
    NOT_AVAILABLE,
    export_csv,
    flatten_summary,
    format_value,
    render_json,
    render_text,
    render_yaml,
)
from cluster_stats import HostRecord, compute_cluster_summary


def test_format_value():
    assert format_value(None) == "N/A"
    assert format_value(None, "%") == "N/A"
    assert format_value(-56.25, "%") == "-56.25%"
    assert format_value(1536.5, " GB") == "1,536.50 GB"
    assert format_value(32) == "32"


def test_text_report_contains_key_figures(scenario_hosts, scenario_vms):
    summary = compute_cluster_summary("wld01-cl01", scenario_hosts, scenario_vms)
    report = render_text(summary, color=False)

    assert "Cluster Sizing Summary: wld01-cl01" in report
    assert "0.44" in report
    assert "-56.25%" in report
    assert "256.00 GB" in report
    assert "\033[" not in report
    assert NOT_AVAILABLE not in report


def test_text_report_empty_cluster_shows_not_available():
    summary = compute_cluster_summary("empty", [], [])
    report = render_text(summary, color=False)

    assert "No hosts in cluster" in report
    assert "No powered-on VMs" in report
    assert "inf" not in report.lower()
    assert report.count(NOT_AVAILABLE) >= 9


def test_text_report_explains_hosts_without_hardware_summary(scenario_vms):
    hosts = [HostRecord(name="esx-disconnected", cpu_cores=0, memory_bytes=0)]
    report = render_text(compute_cluster_summary("wld01-cl01", hosts, scenario_vms), color=False)

    assert "No hosts in cluster" not in report
    assert "Hosts report 0 CPU cores" in report
    assert "Hosts report 0 GB memory" in report


def test_text_report_zero_memory_only(scenario_vms):
    hosts = [HostRecord(name="esx01", cpu_cores=16, memory_bytes=0)]
    report = render_text(compute_cluster_summary("wld01-cl01", hosts, scenario_vms), color=False)

    assert "Hosts report 0 CPU cores" not in report
    assert "Hosts report 0 GB memory" in report


def test_text_report_color(scenario_hosts, scenario_vms):
    summary = compute_cluster_summary("wld01-cl01", scenario_hosts, scenario_vms)
    assert "\033[0;32m" in render_text(summary, color=True)


def test_json_uses_null_for_undefined():
    data = json.loads(render_json(compute_cluster_summary("empty", [], [])))

    assert data["vcpu_to_core_ratio"] is None
    assert data["vcpu_distribution"] == {"minimum": None, "maximum": None, "average": None}
    assert data["vm_to_host_ratio"] is None


def test_yaml_output(scenario_hosts, scenario_vms):
    data = yaml.safe_load(render_yaml(compute_cluster_summary("wld01-cl01", scenario_hosts, scenario_vms)))

    assert data["cluster_name"] == "wld01-cl01"
    assert data["total_vcpu_powered_on"] == 14
    assert data["vmemory_distribution_gb"]["maximum"] == 16.0


def test_flatten_expands_distributions(scenario_hosts, scenario_vms):
    rows = dict(flatten_summary(compute_cluster_summary("c", scenario_hosts, scenario_vms)))

    assert rows["vcpu_distribution.minimum"] == 2
    assert rows["vdisk_distribution_gb.average"] == 0.11
    assert "vcpu_distribution" not in rows


def test_export_csv(tmp_path, scenario_hosts):
    path = tmp_path / "sizing.csv"
    export_csv(compute_cluster_summary("c", scenario_hosts, []), str(path))

    with open(path, newline="") as f:
        rows = list(csv.reader(f))

    assert rows[0] == ["Metric", "Value"]
    values = dict(rows[1:])
    assert values["total_host_cpu_cores"] == "32"
    assert values["vm_to_host_ratio"] == "0.0"
    assert values["vcpu_distribution.average"] == "N/A"
