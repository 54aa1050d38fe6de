from __future__ import annotations

from types import SimpleNamespace

import pytest
from pyVmomi import vim

from cluster_stats import HostRecord, VmRecord

GIB = 1024 ** 3


@pytest.fixture
def scenario_hosts():
    return [
        HostRecord(name="esx01", cpu_cores=16, memory_bytes=128 * GIB),
        HostRecord(name="esx02", cpu_cores=16, memory_bytes=128 * GIB),
    ]


@pytest.fixture
def scenario_vms():
    return [
        VmRecord(name="app01", powered_on=True, vcpu_count=4, vmemory_mb=8192, vdisk_kb=102400),
        VmRecord(name="db01", powered_on=True, vcpu_count=8, vmemory_mb=16384, vdisk_kb=204800),
        VmRecord(name="web01", powered_on=True, vcpu_count=2, vmemory_mb=4096, vdisk_kb=51200),
    ]


def make_vm(name, power_state="poweredOn", num_cpu=2, memory_mb=4096, devices=(), template=False):
    """Stand-in for vim.VirtualMachine with the properties the collector reads."""
    return SimpleNamespace(
        name=name,
        runtime=SimpleNamespace(powerState=power_state),
        config=SimpleNamespace(
            template=template,
            hardware=SimpleNamespace(numCPU=num_cpu, memoryMB=memory_mb, device=list(devices)),
        ),
    )


def make_host(name, cores=16, memory_bytes=128 * GIB):
    return SimpleNamespace(
        name=name,
        summary=SimpleNamespace(
            hardware=SimpleNamespace(numCpuCores=cores, memorySize=memory_bytes),
        ),
    )


class FakeContainerView:
    def __init__(self, objects):
        self.view = objects
        self.destroyed = False

    def Destroy(self):
        self.destroyed = True


class FakeServiceInstance:
    """Serves clusters from the root folder and VMs from a cluster container."""

    def __init__(self, clusters, vms_by_cluster):
        self.clusters = clusters
        self.vms_by_cluster = vms_by_cluster
        self.views = []
        root_folder = SimpleNamespace(name="root")
        self.content = SimpleNamespace(
            rootFolder=root_folder,
            viewManager=SimpleNamespace(CreateContainerView=self._create_view),
        )

    def _create_view(self, container, view_type, recursive):
        if view_type == [vim.ClusterComputeResource]:
            view = FakeContainerView(list(self.clusters))
        elif view_type == [vim.VirtualMachine]:
            view = FakeContainerView(list(self.vms_by_cluster.get(container.name, [])))
        else:
            view = FakeContainerView([])
        self.views.append(view)
        return view

    def RetrieveContent(self):
        return self.content


@pytest.fixture
def fake_si():
    disk = vim.vm.device.VirtualDisk(capacityInKB=10240)
    cluster = SimpleNamespace(
        name="wld01-cl01",
        host=[make_host("esx01"), make_host("esx02", cores=24, memory_bytes=256 * GIB)],
    )
    other = SimpleNamespace(name="mgmt-cl01", host=[make_host("esx11")])
    vms = [
        make_vm("app01", devices=[disk, vim.vm.device.VirtualVmxnet3()]),
        make_vm("app02", power_state="poweredOff", num_cpu=4, memory_mb=8192),
        make_vm("golden-template", template=True),
        SimpleNamespace(name="orphan01", config=None, runtime=None),
    ]
    return FakeServiceInstance([cluster, other], {"wld01-cl01": vms})
