#!/usr/bin/env python3
"""
ABOUTME: Cluster capacity statistics for sizing: vCPU:core ratio, overcommit, distributions.
ABOUTME: Pure functions over host and VM records; no vCenter access happens here.

All memory and disk conversions use binary units (1 GB = 1024 MB = 2^20 KB = 2^30 bytes)
and every derived value is rounded to 2 decimals. Ratios whose divisor is zero and
statistics over an empty sample are reported as None so the report can show "N/A".
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

KB_PER_GB = 1024 ** 2
MB_PER_GB = 1024
BYTES_PER_GB = 1024 ** 3


@dataclass(frozen=True)
class HostRecord:
    """Physical host capacity."""

    name: str
    cpu_cores: int
    memory_bytes: int


@dataclass(frozen=True)
class VmRecord:
    """Configured VM allocation."""

    name: str
    powered_on: bool
    vcpu_count: int
    vmemory_mb: int
    vdisk_kb: int = 0


@dataclass(frozen=True)
class Distribution:
    """Min / max / average of one metric across powered-on VMs."""

    minimum: Optional[float] = None
    maximum: Optional[float] = None
    average: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self.minimum is None


@dataclass(frozen=True)
class ClusterSummary:
    """Cluster-wide sizing statistics for one invocation."""

    cluster_name: str

    # Counts
    total_hosts: int
    total_vms: int
    powered_on_vms: int
    powered_off_vms: int

    # Host capacity
    total_host_cpu_cores: int
    total_host_memory_bytes: int
    host_memory_gb: float

    # VM allocation
    total_vcpu_all: int
    total_vcpu_powered_on: int
    total_vmemory_all_mb: int
    total_vmemory_powered_on_mb: int
    vmemory_all_gb: float
    vmemory_powered_on_gb: float
    total_vdisk_powered_on_kb: int
    vdisk_powered_on_gb: float

    # Ratios (None when the divisor is zero)
    vm_to_host_ratio: Optional[float]
    vcpu_to_core_ratio: Optional[float]
    cpu_overcommit_percent: Optional[float]
    memory_to_host_ratio: Optional[float]
    memory_overcommit_percent: Optional[float]

    # Powered-on VM distributions
    vcpu_distribution: Distribution = field(default_factory=Distribution)
    vmemory_distribution_gb: Distribution = field(default_factory=Distribution)
    vdisk_distribution_gb: Distribution = field(default_factory=Distribution)

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict view, distributions nested as {minimum, maximum, average}."""
        return asdict(self)


def bytes_to_gb(value: float) -> float:
    return round(value / BYTES_PER_GB, 2)


def mb_to_gb(value: float) -> float:
    return round(value / MB_PER_GB, 2)


def kb_to_gb(value: float) -> float:
    return round(value / KB_PER_GB, 2)


def gb_to_mb(value: float) -> float:
    return round(value * MB_PER_GB, 2)


def safe_ratio(numerator: float, denominator: float) -> Optional[float]:
    """Return numerator / denominator rounded to 2 decimals, or None when the denominator is 0."""
    if not denominator:
        return None
    return round(numerator / denominator, 2)


def overcommit_percent(allocated: float, capacity: float) -> Optional[float]:
    """Percentage by which allocated exceeds capacity; negative means headroom."""
    if not capacity:
        return None
    return round((allocated - capacity) / capacity * 100, 2)


def _distribution(values: Sequence[float], convert=None) -> Distribution:
    if not values:
        return Distribution()

    minimum = min(values)
    maximum = max(values)
    average = sum(values) / len(values)

    if convert:
        return Distribution(convert(minimum), convert(maximum), convert(average))
    return Distribution(minimum, maximum, round(average, 2))


def filter_vms(
    vms: Iterable[VmRecord],
    include_names: Optional[Iterable[str]] = None,
    exclude_names: Optional[Iterable[str]] = None,
) -> List[VmRecord]:
    """
    Apply the include list, then the exclude list, by VM name.

    An empty or missing list is a no-op, and names absent from the inventory are
    ignored. A name present in both lists ends up excluded.
    """
    selected = list(vms)

    include = set(include_names or ())
    if include:
        selected = [vm for vm in selected if vm.name in include]

    exclude = set(exclude_names or ())
    if exclude:
        selected = [vm for vm in selected if vm.name not in exclude]

    return selected


def load_name_list(path: str) -> List[str]:
    """Read VM names from a file, one per line. Blank lines and # comments are skipped."""
    names_path = Path(path)
    if not names_path.exists():
        raise FileNotFoundError(f"VM name list not found: {names_path}")

    names = []
    with open(names_path, encoding="utf-8") as f:
        for line in f:
            name = line.split("#", 1)[0].strip()
            if name:
                names.append(name)
    return names


def compute_cluster_summary(
    cluster_name: str,
    hosts: Sequence[HostRecord],
    vms: Sequence[VmRecord],
) -> ClusterSummary:
    """Aggregate host capacity and (already filtered) VM allocation into a ClusterSummary."""
    total_hosts = len(hosts)
    total_vms = len(vms)

    total_host_cpu_cores = sum(host.cpu_cores for host in hosts)
    total_host_memory_bytes = sum(host.memory_bytes for host in hosts)

    total_vcpu_all = sum(vm.vcpu_count for vm in vms)
    total_vmemory_all_mb = sum(vm.vmemory_mb for vm in vms)

    powered_on = [vm for vm in vms if vm.powered_on]
    total_vcpu_powered_on = sum(vm.vcpu_count for vm in powered_on)
    total_vmemory_powered_on_mb = sum(vm.vmemory_mb for vm in powered_on)
    total_vdisk_powered_on_kb = sum(vm.vdisk_kb for vm in powered_on)

    host_memory_gb = bytes_to_gb(total_host_memory_bytes)
    vmemory_all_gb = mb_to_gb(total_vmemory_all_mb)
    vmemory_powered_on_gb = mb_to_gb(total_vmemory_powered_on_mb)
    vdisk_powered_on_gb = kb_to_gb(total_vdisk_powered_on_kb)

    return ClusterSummary(
        cluster_name=cluster_name,
        total_hosts=total_hosts,
        total_vms=total_vms,
        powered_on_vms=len(powered_on),
        powered_off_vms=total_vms - len(powered_on),
        total_host_cpu_cores=total_host_cpu_cores,
        total_host_memory_bytes=total_host_memory_bytes,
        host_memory_gb=host_memory_gb,
        total_vcpu_all=total_vcpu_all,
        total_vcpu_powered_on=total_vcpu_powered_on,
        total_vmemory_all_mb=total_vmemory_all_mb,
        total_vmemory_powered_on_mb=total_vmemory_powered_on_mb,
        vmemory_all_gb=vmemory_all_gb,
        vmemory_powered_on_gb=vmemory_powered_on_gb,
        total_vdisk_powered_on_kb=total_vdisk_powered_on_kb,
        vdisk_powered_on_gb=vdisk_powered_on_gb,
        vm_to_host_ratio=safe_ratio(total_vms, total_hosts),
        vcpu_to_core_ratio=safe_ratio(total_vcpu_powered_on, total_host_cpu_cores),
        cpu_overcommit_percent=overcommit_percent(total_vcpu_powered_on, total_host_cpu_cores),
        # Memory ratios are taken from the GB-rounded figures shown in the report
        memory_to_host_ratio=safe_ratio(vmemory_powered_on_gb, host_memory_gb),
        memory_overcommit_percent=overcommit_percent(vmemory_powered_on_gb, host_memory_gb),
        vcpu_distribution=_distribution([vm.vcpu_count for vm in powered_on]),
        vmemory_distribution_gb=_distribution([vm.vmemory_mb for vm in powered_on], mb_to_gb),
        vdisk_distribution_gb=_distribution([vm.vdisk_kb for vm in powered_on], kb_to_gb),
    )
