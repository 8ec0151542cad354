"""Tests for resource aggregation."""

from __future__ import annotations

import itertools

import pytest

from factories import make_container, make_node, make_node_sample, make_pod, make_pod_sample
from kubedash.services.aggregator import (
    Scope,
    aggregate,
    aggregate_pair,
    container_quantity,
    node_quantity,
    sum_container_resources,
    sum_usage,
)
from kubedash.utils.quantity import Dimension, Quantity

CPU = Dimension.CPU
MEMORY = Dimension.MEMORY


class TestContainerResources:
    """Tests for request and limit sums."""

    def test_container_without_resources_is_zero(self) -> None:
        """Containers that declare nothing contribute zero."""
        assert container_quantity(make_container(), "requests", CPU) == Quantity.zero(CPU)

    def test_sum_requests_over_pods(self) -> None:
        """Requests add up across every container of every pod."""
        pods = [
            make_pod("a", containers=[
                make_container("x", requests={"cpu": "250m"}),
                make_container("y", requests={"cpu": "50m"}),
            ]),
            make_pod("b", containers=[make_container("z", requests={"cpu": "1"})]),
        ]
        assert sum_container_resources(pods, "requests", CPU).value == pytest.approx(1.3e9)

    def test_sum_limits_ignores_requests(self) -> None:
        """Limits and requests are summed separately."""
        pods = [make_pod("a", containers=[make_container(requests={"memory": "1Gi"}, limits={"memory": "2Gi"})])]
        assert sum_container_resources(pods, "limits", MEMORY).value == 2 * 1024**2

    def test_pod_without_containers(self) -> None:
        """A pod with a missing containers list contributes zero."""
        pod = {"metadata": {"name": "odd"}, "spec": {}}
        assert sum_container_resources([pod], "requests", MEMORY) == Quantity.zero(MEMORY)


class TestUsage:
    """Tests for usage sums."""

    def test_no_samples_is_absent(self) -> None:
        """No usage source means usage is not known."""
        assert sum_usage(None, CPU) is None

    def test_empty_samples_is_zero(self) -> None:
        """A measured scope without samples has zero usage."""
        assert sum_usage([], CPU) == Quantity.zero(CPU)

    def test_node_samples(self) -> None:
        """Node samples carry a top-level usage."""
        samples = [make_node_sample("a", "100m", "1Gi"), make_node_sample("b", "50000000n", "512Mi")]
        assert sum_usage(samples, CPU).value == pytest.approx(150_000_000)
        assert sum_usage(samples, MEMORY).value == 1.5 * 1024**2

    def test_pod_samples(self) -> None:
        """Pod samples carry usage per container."""
        samples = [make_pod_sample("p", "ns", [("10m", "10Mi"), ("20m", "30Mi")])]
        assert sum_usage(samples, CPU).value == pytest.approx(30_000_000)
        assert sum_usage(samples, MEMORY).value == 40 * 1024


class TestAggregate:
    """Tests for aggregate and aggregate_pair."""

    def test_node_capacity_read_from_status(self) -> None:
        """Capacity comes from status.capacity."""
        node = make_node("n", cpu="4", memory="8Gi")
        assert node_quantity(node, "capacity", CPU).value == 4e9

    def test_cluster_aggregate(self) -> None:
        """Totals sum node capacity; usage sums samples."""
        nodes = [make_node("a", cpu="2"), make_node("b", cpu="2")]
        pods = [make_pod("p", containers=[make_container(requests={"cpu": "500m"}, limits={"cpu": "1"})])]
        samples = [make_node_sample("a", "100m", "1Gi"), make_node_sample("b", "120m", "1Gi")]

        figure = aggregate(Scope.CLUSTER, CPU, nodes, pods, samples)

        assert figure.total.value == 4e9
        assert figure.used.value == pytest.approx(2.2e8)
        assert figure.requested.value == 5e8
        assert figure.limited.value == 1e9
        assert figure.used_percentage == pytest.approx(5.5)
        assert figure.requested_percentage == pytest.approx(12.5)

    def test_namespace_has_no_total(self) -> None:
        """Namespaces have no capacity of their own."""
        figure = aggregate(Scope.NAMESPACE, MEMORY, pods=[make_pod("p")], samples=[])
        assert figure.total is None
        assert figure.used_percentage is None

    def test_unmeasured_usage_is_absent(self) -> None:
        """Without samples the usage and its percentage are absent."""
        figure = aggregate(Scope.NODE, CPU, [make_node("a")], [])
        assert figure.used is None
        assert figure.used_percentage is None
        assert figure.requested_percentage == 0.0

    def test_aggregate_pair_accepts_generators(self) -> None:
        """Iterables are materialized once and reused per dimension."""
        nodes = (node for node in [make_node("a", cpu="1", memory="1Gi")])
        samples = (sample for sample in [make_node_sample("a", "250m", "256Mi")])

        cpu, memory = aggregate_pair(Scope.NODE, nodes, [], samples)

        assert cpu.total.value == 1e9
        assert memory.total.value == 1024**2
        assert cpu.used.value == pytest.approx(2.5e8)
        assert memory.used.value == 256 * 1024

    @pytest.mark.parametrize("dimension", [CPU, MEMORY])
    def test_aggregate_is_order_independent(self, dimension: Dimension) -> None:
        """Every ordering of nodes and pods gives the same figure."""
        nodes = [
            make_node("a", cpu="1.1", memory="1G"),
            make_node("b", cpu="333m", memory="3Gi"),
            make_node("c", cpu="70000001n", memory="7777Ki"),
        ]
        pods = [
            make_pod("p", containers=[make_container(requests={"cpu": "0.1", "memory": "100M"}, limits={"cpu": "1"})]),
            make_pod("q", containers=[make_container(requests={"cpu": "33m", "memory": "3Mi"}, limits={"memory": "1Gi"})]),
            make_pod("r", containers=[
                make_container("x", requests={"cpu": "7n", "memory": "123"}, limits={"cpu": "0.3", "memory": "0.1G"}),
                make_container("y", requests={"cpu": "1u"}),
            ]),
        ]
        samples = [make_node_sample(name, "0.15", "1.1Gi") for name in ("a", "b", "c")]

        figures = [
            aggregate(Scope.CLUSTER, dimension, node_order, pod_order, samples)
            for node_order in itertools.permutations(nodes)
            for pod_order in itertools.permutations(pods)
        ]

        assert len(figures) == 36
        for figure in figures[1:]:
            assert figure.total == figures[0].total
            assert figure.requested == figures[0].requested
            assert figure.limited == figures[0].limited
            assert figure.used == figures[0].used
