"""Tests for the metric catalog and snapshot flattening."""

import pytest

from prometheus_xentop.metrics.base import MetricKind, MetricScope
from prometheus_xentop.metrics.catalog import Granularity, MetricCatalog, build_catalog
from prometheus_xentop.metrics.flatten import flatten, flatten_domain
from prometheus_xentop.xenstat.models import (
    BlockDeviceSnapshot,
    DomainSnapshot,
    DomainState,
    NetworkDeviceSnapshot,
)


def _domain(name="vm1", vbds=1, nics=0):
    return DomainSnapshot(
        name=name,
        state=DomainState.RUNNING,
        cpu_seconds=2.0,
        vcpu_count=2,
        memory_bytes=4096,
        max_memory_bytes=8192,
        block_devices=tuple(
            BlockDeviceSnapshot.from_sectors(
                major=202, minor=i * 16, out_of_requests=i, read_requests=10,
                write_requests=5, sectors_read=100, sectors_written=50,
            )
            for i in range(vbds)
        ),
        network_devices=tuple(NetworkDeviceSnapshot(1000 + i, 2000 + i) for i in range(nics)),
    )


def _by_key(samples):
    return {(s.name, tuple(sorted(s.labels.items()))): s.value for s in samples}


def test_catalog_names_and_kinds():
    catalog = MetricCatalog()
    names = [spec.name for spec in catalog]
    assert len(catalog) == 13
    assert len(set(names)) == 13
    assert all(name.startswith("xen_") for name in names)
    assert catalog.get("xen_cpu_seconds_total").kind is MetricKind.COUNTER
    assert catalog.get("xen_memory_used_bytes").kind is MetricKind.GAUGE
    for spec in catalog:
        if spec.kind is MetricKind.COUNTER:
            assert spec.name.endswith("_total")


def test_catalog_scopes():
    catalog = MetricCatalog()
    assert len(catalog.specs_for(MetricScope.DOMAIN)) == 6
    assert len(catalog.specs_for(MetricScope.VBD)) == 5
    assert len(catalog.specs_for(MetricScope.NIC)) == 2


def test_label_schema_fine():
    catalog = build_catalog("fine")
    assert catalog.labels_for(catalog.get("xen_cpu_count")) == ("dom",)
    assert catalog.labels_for(catalog.get("xen_vbd_read_bytes_total")) == ("dom", "vbd")
    assert catalog.labels_for(catalog.get("xen_net_receive_bytes_total")) == ("dom", "nic")


def test_label_schema_coarse():
    catalog = build_catalog(Granularity.COARSE)
    for spec in catalog:
        assert catalog.labels_for(spec) == ("dom",)


def test_unknown_granularity():
    with pytest.raises(ValueError):
        build_catalog("medium")


def test_flatten_scenario():
    samples = flatten([_domain()], MetricCatalog())
    values = _by_key(samples)
    assert values[("xen_cpu_seconds_total", (("dom", "vm1"),))] == 2.0
    assert values[("xen_vbd_read_bytes_total", (("dom", "vm1"), ("vbd", "0")))] == 51200
    assert values[("xen_vbd_written_bytes_total", (("dom", "vm1"), ("vbd", "0")))] == 25600
    assert values[("xen_vbd_count", (("dom", "vm1"),))] == 1
    assert values[("xen_nic_count", (("dom", "vm1"),))] == 0


@pytest.mark.parametrize("vbds,nics", [(0, 0), (1, 0), (3, 2), (0, 4)])
def test_fine_sample_count(vbds, nics):
    samples = flatten_domain(_domain(vbds=vbds, nics=nics), MetricCatalog())
    assert len(samples) == 6 + 5 * vbds + 2 * nics


def test_fine_device_labels_are_positional():
    samples = flatten_domain(_domain(vbds=3, nics=2), MetricCatalog())
    vbd_labels = {s.labels["vbd"] for s in samples if "vbd" in s.labels}
    nic_labels = {s.labels["nic"] for s in samples if "nic" in s.labels}
    assert vbd_labels == {"0", "1", "2"}
    assert nic_labels == {"0", "1"}
    oo = {s.labels["vbd"]: s.value for s in samples if s.name == "xen_vbd_out_of_requests_errors_total"}
    assert oo == {"0": 0.0, "1": 1.0, "2": 2.0}


def test_coarse_sums_devices():
    samples = flatten_domain(_domain(vbds=3, nics=2), MetricCatalog(Granularity.COARSE))
    assert len(samples) == 13
    values = {s.name: s.value for s in samples}
    assert values["xen_vbd_read_bytes_total"] == 3 * 51200
    assert values["xen_vbd_read_requests_total"] == 30
    assert values["xen_vbd_out_of_requests_errors_total"] == 0 + 1 + 2
    assert values["xen_net_transmit_bytes_total"] == 1000 + 1001
    assert values["xen_net_receive_bytes_total"] == 2000 + 2001


def test_coarse_without_devices_reports_zero():
    samples = flatten_domain(_domain(vbds=0, nics=0), MetricCatalog(Granularity.COARSE))
    values = {s.name: s.value for s in samples}
    assert values["xen_vbd_written_bytes_total"] == 0.0
    assert values["xen_net_transmit_bytes_total"] == 0.0


def test_write_requests_not_confused_with_reads():
    samples = flatten_domain(_domain(vbds=1), MetricCatalog())
    values = {s.name: s.value for s in samples}
    assert values["xen_vbd_read_requests_total"] == 10
    assert values["xen_vbd_write_requests_total"] == 5


def test_flatten_multiple_domains():
    samples = flatten([_domain("a", vbds=1), _domain("b", vbds=2, nics=1)], MetricCatalog())
    assert len(samples) == (6 + 5) + (6 + 10 + 2)
    assert {s.labels["dom"] for s in samples} == {"a", "b"}


def test_flatten_empty():
    assert flatten([], MetricCatalog()) == []
