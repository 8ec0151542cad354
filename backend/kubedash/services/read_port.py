"""
Read operations the overview builder needs from a cluster.

Collections are returned as lists of plain dicts in Kubernetes API JSON shape
(camelCase keys). Implementations apply their own per-call timeouts and raise
ClusterReadError subclasses on failure.
"""

from typing import Any, Dict, List, Protocol


class ClusterReadPort(Protocol):
    """Source of cluster state for an overview build."""

    async def list_nodes(self) -> List[Dict[str, Any]]:
        ...

    async def list_pods(self) -> List[Dict[str, Any]]:
        """Pods across all namespaces."""
        ...

    async def list_namespaces(self) -> List[Dict[str, Any]]:
        ...

    async def list_deployments(self) -> List[Dict[str, Any]]:
        ...

    async def list_statefulsets(self) -> List[Dict[str, Any]]:
        ...

    async def list_events(self) -> List[Dict[str, Any]]:
        ...

    async def list_persistent_volumes(self) -> List[Dict[str, Any]]:
        ...

    async def probe_metrics_server(self) -> bool:
        """True when the metrics-server add-on is reachable and ready."""
        ...

    async def list_node_metrics(self) -> List[Dict[str, Any]]:
        """metrics.k8s.io node samples."""
        ...

    async def list_pod_metrics(self) -> List[Dict[str, Any]]:
        """metrics.k8s.io pod samples, with usage per container."""
        ...
