"""Shared fixtures for kubedash tests."""

from __future__ import annotations

import pytest

from factories import (
    NOW,
    FakeReadPort,
    ago,
    make_container,
    make_event,
    make_namespace,
    make_node,
    make_node_sample,
    make_persistent_volume,
    make_pod,
    make_pod_sample,
    make_workload,
)
from kubedash.services.overview_builder import ClusterOverviewBuilder


@pytest.fixture
def small_cluster() -> FakeReadPort:
    """Two nodes, three namespaces, a handful of pods with samples."""
    return FakeReadPort(
        nodes=[
            make_node("cp-1", cpu="4", memory="8Gi", labels={"node-role.kubernetes.io/control-plane": ""}),
            make_node("worker-1", cpu="2", memory="4Gi", pods=None),
        ],
        pods=[
            make_pod(
                "api-1",
                namespace="shop",
                node="worker-1",
                containers=[
                    make_container("api", requests={"cpu": "250m", "memory": "256Mi"}, limits={"cpu": "1", "memory": "512Mi"}),
                    make_container("sidecar", requests={"cpu": "50m", "memory": "64Mi"}),
                ],
            ),
            make_pod(
                "db-0",
                namespace="shop",
                node="worker-1",
                phase="Pending",
                containers=[make_container("db", requests={"cpu": "500m", "memory": "1Gi"}, limits={"memory": "2Gi"})],
            ),
            make_pod(
                "etcd-cp-1",
                namespace="kube-system",
                node="cp-1",
                containers=[make_container("etcd", requests={"cpu": "100m", "memory": "100Mi"})],
            ),
            make_pod("job-x", namespace="shop", node="worker-1", phase="Succeeded", containers=[make_container()]),
        ],
        namespaces=[make_namespace("shop"), make_namespace("kube-system"), make_namespace("empty")],
        deployments=[
            make_workload("api", namespace="shop", replicas=2, ready=2),
            make_workload("web", namespace="shop", replicas=3, ready=1),
            make_workload("coredns", namespace="kube-system", replicas=2, ready=2),
        ],
        statefulsets=[make_workload("db", namespace="shop", replicas=1, ready=0)],
        events=[
            make_event("Warning", "BackOff", last_timestamp=ago(minutes=10)),
            make_event("Warning", "FailedScheduling", last_timestamp=ago(minutes=20)),
            make_event("Normal", "Pulled", last_timestamp=ago(minutes=5)),
            make_event("Warning", "BackOff", last_timestamp=ago(hours=3)),
        ],
        persistent_volumes=[
            make_persistent_volume("10Gi", "Bound"),
            make_persistent_volume("5Gi", "Available"),
        ],
        node_metrics=[
            make_node_sample("cp-1", "400000000n", "2Gi"),
            make_node_sample("worker-1", "150m", "1Gi"),
        ],
        pod_metrics=[
            make_pod_sample("api-1", "shop", [("20000000n", "100Mi"), ("5000000n", "20Mi")]),
            make_pod_sample("etcd-cp-1", "kube-system", [("30m", "80Mi")]),
        ],
    )


@pytest.fixture
def builder_for():
    """Factory for builders over a read port, with a fixed clock."""

    def _builder(read_port, **kwargs) -> ClusterOverviewBuilder:
        return ClusterOverviewBuilder(read_port, clock=lambda: NOW, **kwargs)

    return _builder
