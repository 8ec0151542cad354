"""
Cluster overview builder.
Fans out reads to the cluster, joins them, and aggregates the per-node,
per-namespace and cluster-wide rollups rendered by the dashboard.
"""

import asyncio
import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from kubedash.core.config import Settings
from kubedash.core.exceptions import OverviewBuildError
from kubedash.models.kubernetes import (
    ClusterOverview,
    ClusterRollup,
    DeploymentCounts,
    EventCounts,
    NamespaceRollup,
    NodeCounts,
    NodeSnapshot,
    PodCounts,
    StorageFigure,
    WorkloadInfo,
    WorkloadsOverview,
)
from kubedash.services.aggregator import Scope, aggregate_pair, node_quantity
from kubedash.services.metrics_policy import MetricsAvailabilityPolicy
from kubedash.services.read_port import ClusterReadPort
from kubedash.utils.formatters import format_relative_time, parse_timestamp
from kubedash.utils.quantity import Dimension, parse_quantity, sum_quantities

logger = logging.getLogger(__name__)

DEFAULT_MAX_PODS = 110


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _name(obj: Dict[str, Any]) -> Optional[str]:
    return _mapping(obj.get("metadata")).get("name")


def _namespace(obj: Dict[str, Any]) -> Optional[str]:
    return _mapping(obj.get("metadata")).get("namespace")


def _group_by(items: Iterable[Dict[str, Any]], key: Callable[[Dict[str, Any]], Any]) -> Dict[Any, List[Dict[str, Any]]]:
    groups: Dict[Any, List[Dict[str, Any]]] = defaultdict(list)
    for item in items:
        groups[key(item)].append(item)
    return groups


class ClusterOverviewBuilder:
    """
    Builds ClusterOverview snapshots from a cluster read port.

    Each build is independent: it issues its own reads, waits for all of them,
    and aggregates the fresh results. Nodes, pods, namespaces, deployments and
    statefulsets are required; events and persistent volumes are optional and
    degrade to empty collections.
    """

    REQUIRED_SOURCES = ("nodes", "pods", "namespaces", "deployments", "statefulsets")
    OPTIONAL_SOURCES = ("events", "persistent_volumes")
    ERROR_EVENT_REASONS = ("Failed", "FailedScheduling")
    NODE_ROLE_LABEL_PREFIX = "node-role.kubernetes.io/"
    DEFAULT_NODE_ROLE = "worker"

    def __init__(
        self,
        read_port: ClusterReadPort,
        policy: Optional[MetricsAvailabilityPolicy] = None,
        event_window: timedelta = timedelta(hours=1),
        default_max_pods: int = DEFAULT_MAX_PODS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the builder.

        Args:
            read_port: Source of cluster state
            policy: Metrics availability policy (strict, enabled by default)
            event_window: How far back events count towards warnings/errors
            default_max_pods: Pod capacity assumed for nodes that omit it
            clock: Returns the current aware datetime
        """
        self.read_port = read_port
        self.policy = policy or MetricsAvailabilityPolicy()
        self.event_window = event_window
        self.default_max_pods = default_max_pods
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_settings(cls, read_port: ClusterReadPort, settings: Settings) -> "ClusterOverviewBuilder":
        return cls(
            read_port,
            policy=MetricsAvailabilityPolicy(enabled=settings.enable_metrics),
            event_window=timedelta(minutes=settings.event_window_minutes),
            default_max_pods=settings.default_max_pods,
        )

    async def _gather(self, reads: Dict[str, Awaitable[Any]]) -> Dict[str, Any]:
        """Await every read, keeping failures as values"""
        results = await asyncio.gather(*reads.values(), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
        return dict(zip(reads, results))

    def _required(self, results: Dict[str, Any], source: str) -> List[Dict[str, Any]]:
        result = results[source]
        if isinstance(result, Exception):
            logger.error(f"Failed to read {source}: {result}")
            raise OverviewBuildError(source, result) from result
        return list(result or [])

    def _optional(self, results: Dict[str, Any], source: str) -> List[Dict[str, Any]]:
        result = results[source]
        if isinstance(result, Exception):
            logger.warning(f"Could not read {source}, continuing without it: {result}")
            return []
        return list(result or [])

    def _metrics(self, results: Dict[str, Any]):
        """Resolve metrics availability and the samples to aggregate usage from"""
        available = self.policy.is_available(results.get("metrics_probe", False))
        node_samples = results.get("node_metrics")
        pod_samples = results.get("pod_metrics")

        if available:
            for source, samples in (("node_metrics", node_samples), ("pod_metrics", pod_samples)):
                if isinstance(samples, Exception):
                    logger.warning(f"Metrics server is ready but {source} could not be read: {samples}")
                    available = False

        if not available:
            if self.policy.enabled:
                logger.warning("Metrics server unavailable, usage will be reported as absent")
            return False, [], []
        return True, list(node_samples or []), list(pod_samples or [])

    async def build(self) -> ClusterOverview:
        """
        Build the cluster overview.

        Returns:
            ClusterOverview: Cluster rollup, node snapshots and namespace rollups

        Raises:
            OverviewBuildError: A required collection could not be read
        """
        reads: Dict[str, Awaitable[Any]] = {
            "nodes": self.read_port.list_nodes(),
            "pods": self.read_port.list_pods(),
            "namespaces": self.read_port.list_namespaces(),
            "deployments": self.read_port.list_deployments(),
            "statefulsets": self.read_port.list_statefulsets(),
            "events": self.read_port.list_events(),
            "persistent_volumes": self.read_port.list_persistent_volumes(),
        }
        if self.policy.enabled:
            reads["metrics_probe"] = self.read_port.probe_metrics_server()
            reads["node_metrics"] = self.read_port.list_node_metrics()
            reads["pod_metrics"] = self.read_port.list_pod_metrics()

        results = await self._gather(reads)

        nodes, pods, namespaces, deployments, statefulsets = (
            self._required(results, source) for source in self.REQUIRED_SOURCES
        )
        events, volumes = (self._optional(results, source) for source in self.OPTIONAL_SOURCES)
        available, node_samples, pod_samples = self._metrics(results)

        now = self._clock()
        pods_by_node = _group_by(pods, lambda pod: _mapping(pod.get("spec")).get("nodeName"))
        samples_by_node = _group_by(node_samples, _name)

        node_snapshots = [
            self._node_snapshot(node, pods_by_node.get(_name(node), []), samples_by_node.get(_name(node), []), available)
            for node in nodes
        ]
        namespace_rollups = self._namespace_rollups(
            namespaces, pods, pod_samples, deployments, statefulsets, available
        )
        cluster = self._cluster_rollup(
            nodes, pods, namespaces, deployments, events, volumes, node_samples, available, now
        )

        return ClusterOverview(
            cluster=cluster,
            nodes=node_snapshots,
            namespaces=namespace_rollups,
            metrics_available=available,
            generated_at=now,
        )

    def _node_snapshot(
        self,
        node: Dict[str, Any],
        pods: List[Dict[str, Any]],
        samples: List[Dict[str, Any]],
        available: bool,
    ) -> NodeSnapshot:
        metadata = _mapping(node.get("metadata"))
        status = _mapping(node.get("status"))
        ready = self.is_node_ready(node)

        cpu, memory = aggregate_pair(Scope.NODE, [node], pods, samples)
        return NodeSnapshot(
            name=metadata.get("name") or "unknown",
            role=self.node_role(_mapping(metadata.get("labels"))),
            version=_mapping(status.get("nodeInfo")).get("kubeletVersion"),
            status="Ready" if ready else "NotReady",
            ready=ready,
            unschedulable=bool(_mapping(node.get("spec")).get("unschedulable", False)),
            cpu=self.policy.apply(available, cpu),
            memory=self.policy.apply(available, memory),
            cpu_allocatable=node_quantity(node, "allocatable", Dimension.CPU),
            memory_allocatable=node_quantity(node, "allocatable", Dimension.MEMORY),
            pod_count=len(pods),
            pod_capacity=self.pod_capacity(node),
        )

    def _namespace_rollups(
        self,
        namespaces: List[Dict[str, Any]],
        pods: List[Dict[str, Any]],
        pod_samples: List[Dict[str, Any]],
        deployments: List[Dict[str, Any]],
        statefulsets: List[Dict[str, Any]],
        available: bool,
    ) -> List[NamespaceRollup]:
        pods_by_namespace = _group_by(pods, _namespace)
        samples_by_namespace = _group_by(pod_samples, _namespace)
        deployment_counts = Counter(_namespace(d) for d in deployments)
        statefulset_counts = Counter(_namespace(s) for s in statefulsets)

        rollups = []
        for namespace in namespaces:
            name = _name(namespace)
            namespace_pods = pods_by_namespace.get(name, [])
            cpu, memory = aggregate_pair(
                Scope.NAMESPACE, pods=namespace_pods, samples=samples_by_namespace.get(name, [])
            )
            rollups.append(
                NamespaceRollup(
                    name=name or "unknown",
                    status=_mapping(namespace.get("status")).get("phase"),
                    pods=len(namespace_pods),
                    deployments=deployment_counts.get(name, 0),
                    statefulsets=statefulset_counts.get(name, 0),
                    cpu=self.policy.apply(available, cpu),
                    memory=self.policy.apply(available, memory),
                )
            )
        return rollups

    def _cluster_rollup(
        self,
        nodes: List[Dict[str, Any]],
        pods: List[Dict[str, Any]],
        namespaces: List[Dict[str, Any]],
        deployments: List[Dict[str, Any]],
        events: List[Dict[str, Any]],
        volumes: List[Dict[str, Any]],
        node_samples: List[Dict[str, Any]],
        available: bool,
        now: datetime,
    ) -> ClusterRollup:
        cpu, memory = aggregate_pair(Scope.CLUSTER, nodes, pods, node_samples)
        return ClusterRollup(
            nodes=NodeCounts(
                total=len(nodes),
                ready=sum(1 for node in nodes if self.is_node_ready(node)),
            ),
            cpu=self.policy.apply(available, cpu),
            memory=self.policy.apply(available, memory),
            pods=self.pod_counts(pods, nodes),
            namespaces=len(namespaces),
            deployments=DeploymentCounts(
                total=len(deployments),
                available=sum(1 for d in deployments if self.is_deployment_available(d)),
            ),
            events=self.count_events(events, now),
            storage=self.storage_figure(volumes),
        )

    @staticmethod
    def is_node_ready(node: Dict[str, Any]) -> bool:
        conditions = _mapping(node.get("status")).get("conditions") or []
        return any(
            isinstance(c, dict) and c.get("type") == "Ready" and c.get("status") == "True"
            for c in conditions
        )

    @classmethod
    def node_role(cls, labels: Dict[str, str]) -> str:
        """Role from the first node-role.kubernetes.io/<role> label, worker if none"""
        for label in sorted(labels):
            if label.startswith(cls.NODE_ROLE_LABEL_PREFIX):
                role = label[len(cls.NODE_ROLE_LABEL_PREFIX):]
                if role:
                    return role
        return cls.DEFAULT_NODE_ROLE

    def pod_capacity(self, node: Dict[str, Any]) -> int:
        capacity = _mapping(_mapping(node.get("status")).get("capacity"))
        try:
            max_pods = int(float(capacity.get("pods")))
        except (TypeError, ValueError, OverflowError):
            return self.default_max_pods
        return max_pods if max_pods >= 0 else self.default_max_pods

    def pod_counts(self, pods: List[Dict[str, Any]], nodes: List[Dict[str, Any]]) -> PodCounts:
        phases = Counter(_mapping(pod.get("status")).get("phase") for pod in pods)
        running, pending, failed = phases["Running"], phases["Pending"], phases["Failed"]
        return PodCounts(
            total=len(pods),
            running=running,
            pending=pending,
            failed=failed,
            other=len(pods) - running - pending - failed,
            capacity=sum(self.pod_capacity(node) for node in nodes),
        )

    @staticmethod
    def is_deployment_available(deployment: Dict[str, Any]) -> bool:
        """Available when every declared replica is ready and at least one is declared"""
        replicas = _mapping(deployment.get("spec")).get("replicas") or 0
        ready = _mapping(deployment.get("status")).get("readyReplicas") or 0
        return replicas > 0 and ready == replicas

    def count_events(self, events: List[Dict[str, Any]], now: datetime) -> EventCounts:
        """Count warning and error events newer than the event window"""
        cutoff = now - self.event_window
        warnings = errors = 0
        for event in events:
            timestamp = parse_timestamp(
                event.get("lastTimestamp")
                or event.get("eventTime")
                or _mapping(event.get("metadata")).get("creationTimestamp")
            )
            if timestamp is None or timestamp <= cutoff:
                continue
            if event.get("type") == "Warning":
                warnings += 1
            if event.get("type") == "Error" or event.get("reason") in self.ERROR_EVENT_REASONS:
                errors += 1
        return EventCounts(warnings=warnings, errors=errors)

    @staticmethod
    def storage_figure(volumes: List[Dict[str, Any]]) -> Optional[StorageFigure]:
        """Persistent volume capacity and the part claimed by bound volumes; None without volumes"""
        capacities = [
            (
                _mapping(volume.get("status")).get("phase"),
                parse_quantity(
                    _mapping(_mapping(volume.get("spec")).get("capacity")).get("storage"),
                    Dimension.STORAGE,
                ),
            )
            for volume in volumes
        ]
        total = sum_quantities((quantity for _, quantity in capacities), Dimension.STORAGE)
        if total.value <= 0:
            return None
        return StorageFigure(
            total=total,
            bound=sum_quantities(
                (quantity for phase, quantity in capacities if phase == "Bound"), Dimension.STORAGE
            ),
        )

    async def build_workloads(self) -> WorkloadsOverview:
        """
        List deployments and statefulsets with their readiness.

        Raises:
            OverviewBuildError: Either collection could not be read
        """
        results = await self._gather({
            "deployments": self.read_port.list_deployments(),
            "statefulsets": self.read_port.list_statefulsets(),
        })
        now = self._clock()
        return WorkloadsOverview(
            deployments=[self._workload("Deployment", d, now) for d in self._required(results, "deployments")],
            statefulsets=[self._workload("StatefulSet", s, now) for s in self._required(results, "statefulsets")],
        )

    @staticmethod
    def _workload(kind: str, workload: Dict[str, Any], now: datetime) -> WorkloadInfo:
        metadata = _mapping(workload.get("metadata"))
        spec = _mapping(workload.get("spec"))
        replicas = spec.get("replicas")
        ready = _mapping(workload.get("status")).get("readyReplicas") or 0
        containers = _mapping(_mapping(spec.get("template")).get("spec")).get("containers") or []
        image = containers[0].get("image") if containers and isinstance(containers[0], dict) else None
        created_at = parse_timestamp(metadata.get("creationTimestamp"))

        return WorkloadInfo(
            kind=kind,
            namespace=metadata.get("namespace"),
            name=metadata.get("name"),
            ready=f"{ready}/{replicas if replicas is not None else 0}",
            image=image,
            created_at=created_at,
            age=format_relative_time(created_at, now),
            status="Healthy" if ready == replicas else "Unhealthy",
        )
