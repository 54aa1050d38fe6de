#!/usr/bin/env python3
"""
ABOUTME: Collects host and VM inventory for a single vSphere cluster.
ABOUTME: Converts pyVmomi objects into HostRecord / VmRecord and saves/loads YAML snapshots.
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml
from pyVim import connect
from pyVmomi import vim

from cluster_stats import HostRecord, VmRecord


def progress(message: str) -> None:
    """Status output; goes to stderr so structured output on stdout stays parseable."""
    print(message, file=sys.stderr)


class ClusterNotFoundError(LookupError):
    """The requested cluster does not exist in the vCenter inventory."""


class AmbiguousClusterError(LookupError):
    """More than one cluster matches the requested name."""


class InventoryFileError(ValueError):
    """An inventory snapshot file is missing required fields or is not valid YAML."""


def virtual_disk_kb(devices: Optional[Iterable[Any]]) -> int:
    """Total provisioned capacity in KB of the VirtualDisk devices in a device list."""
    total = 0
    for device in devices or []:
        if isinstance(device, vim.vm.device.VirtualDisk):
            total += int(getattr(device, "capacityInKB", 0) or 0)
    return total


def host_record_from_host(host: Any) -> HostRecord:
    """Build a HostRecord from a vim.HostSystem."""
    hardware = host.summary.hardware
    return HostRecord(
        name=host.name,
        cpu_cores=int(hardware.numCpuCores or 0) if hardware else 0,
        memory_bytes=int(hardware.memorySize or 0) if hardware else 0,
    )


def vm_record_from_vm(vm: Any) -> VmRecord:
    """Build a VmRecord from a vim.VirtualMachine with a readable config."""
    hardware = vm.config.hardware
    power_state = str(vm.runtime.powerState) if vm.runtime else ""
    return VmRecord(
        name=vm.name,
        powered_on=power_state == "poweredOn",
        vcpu_count=int(hardware.numCPU or 0),
        vmemory_mb=int(hardware.memoryMB or 0),
        vdisk_kb=virtual_disk_kb(hardware.device),
    )


class InventoryCollector:
    """Read-only vCenter session used to fetch one cluster's hosts and VMs."""

    def __init__(
        self,
        hostname: str,
        username: str,
        password: str,
        port: int = 443,
        verify_ssl: bool = False,
    ):
        self.hostname = hostname
        self.username = username
        self.password = password
        self.port = port
        self.verify_ssl = verify_ssl
        self.si: Optional[vim.ServiceInstance] = None

    def __enter__(self) -> "InventoryCollector":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    def connect(self) -> None:
        """Connect to vCenter Server."""
        try:
            self.si = connect.SmartConnect(
                host=self.hostname,
                user=self.username,
                pwd=self.password,
                port=self.port,
                disableSslCertValidation=not self.verify_ssl,
            )
        except Exception as e:
            raise ConnectionError(f"Failed to connect to vCenter {self.hostname}: {e}")

    def disconnect(self) -> None:
        """Disconnect from vCenter Server."""
        if self.si:
            connect.Disconnect(self.si)
            self.si = None

    def _list_objects(self, container: Any, view_type: List[type]) -> List[Any]:
        if not self.si:
            raise RuntimeError("Not connected to vCenter")

        content = self.si.RetrieveContent()
        container_view = content.viewManager.CreateContainerView(
            container or content.rootFolder, view_type, True
        )
        try:
            return list(container_view.view)
        finally:
            container_view.Destroy()

    def find_cluster(self, cluster_name: str) -> vim.ClusterComputeResource:
        """Resolve a cluster name to exactly one ClusterComputeResource."""
        matches = [
            cluster
            for cluster in self._list_objects(None, [vim.ClusterComputeResource])
            if cluster.name == cluster_name
        ]

        if not matches:
            raise ClusterNotFoundError(f"Cluster '{cluster_name}' not found in vCenter inventory")
        if len(matches) > 1:
            raise AmbiguousClusterError(
                f"Cluster name '{cluster_name}' matches {len(matches)} clusters; "
                f"rename one of them or query a single datacenter"
            )
        return matches[0]

    def fetch_hosts(self, cluster_name: str) -> List[HostRecord]:
        """Return one HostRecord per host in the cluster."""
        cluster = self.find_cluster(cluster_name)
        return [host_record_from_host(host) for host in cluster.host]

    def fetch_vms(self, cluster_name: str) -> List[VmRecord]:
        """Return one VmRecord per VM in the cluster, templates excluded."""
        cluster = self.find_cluster(cluster_name)

        records = []
        for vm in self._list_objects(cluster, [vim.VirtualMachine]):
            if vm.config is None:
                progress(f"⚠ Skipping VM '{vm.name}': configuration not readable (inaccessible or orphaned)")
                continue
            if vm.config.template:
                continue
            records.append(vm_record_from_vm(vm))
        return records


def save_inventory(
    path: str,
    cluster_name: str,
    hosts: List[HostRecord],
    vms: List[VmRecord],
) -> None:
    """Write a point-in-time inventory snapshot as YAML."""
    snapshot = {
        "cluster": cluster_name,
        "captured_at": datetime.now().isoformat(timespec="seconds"),
        "hosts": [
            {"name": h.name, "cpu_cores": h.cpu_cores, "memory_bytes": h.memory_bytes}
            for h in hosts
        ],
        "vms": [
            {
                "name": v.name,
                "powered_on": v.powered_on,
                "vcpu_count": v.vcpu_count,
                "vmemory_mb": v.vmemory_mb,
                "vdisk_kb": v.vdisk_kb,
            }
            for v in vms
        ],
    }

    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(snapshot, f, sort_keys=False)


def _records(entries: Any, record_type: type, section: str) -> List[Any]:
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise InventoryFileError(f"'{section}' must be a list")

    records = []
    for index, entry in enumerate(entries):
        try:
            records.append(record_type(**entry))
        except TypeError as e:
            raise InventoryFileError(f"Invalid entry {index} in '{section}': {e}")
    return records


def load_inventory(path: str) -> Tuple[str, List[HostRecord], List[VmRecord]]:
    """Read a snapshot written by save_inventory. Returns (cluster_name, hosts, vms)."""
    snapshot_path = Path(path)
    if not snapshot_path.exists():
        raise FileNotFoundError(f"Inventory file not found: {snapshot_path}")

    try:
        with open(snapshot_path, encoding="utf-8") as f:
            data: Dict[str, Any] = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InventoryFileError(f"Failed to parse inventory file {snapshot_path}: {e}")

    if not isinstance(data, dict) or "cluster" not in data:
        raise InventoryFileError(f"Inventory file {snapshot_path} has no 'cluster' key")

    hosts = _records(data.get("hosts"), HostRecord, "hosts")
    vms = _records(data.get("vms"), VmRecord, "vms")
    return str(data["cluster"]), hosts, vms
