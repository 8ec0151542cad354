from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError
from typing import Any, Callable, Dict, List, Optional
import asyncio
import logging

from kubedash.core.config import Settings, settings as default_settings
from kubedash.core.exceptions import (
    ClusterApiError,
    ClusterReadError,
    ClusterUnreachableError,
    MalformedResponseError,
)

logger = logging.getLogger(__name__)

METRICS_GROUP = "metrics.k8s.io"
METRICS_VERSION = "v1beta1"


class KubernetesService:
    """Cluster read port backed by the official Kubernetes client.

    The client is blocking, so every call runs in a worker thread with a
    per-request timeout. Results are returned as plain dicts in API JSON shape.
    """

    def __init__(self, settings: Optional[Settings] = None, api_client: Optional[client.ApiClient] = None):
        self.settings = settings or default_settings
        self.api_client = api_client or self._load_config()
        self.core_v1 = client.CoreV1Api(self.api_client)
        self.apps_v1 = client.AppsV1Api(self.api_client)
        self.custom_objects = client.CustomObjectsApi(self.api_client)

    def _load_config(self) -> client.ApiClient:
        """Load Kubernetes configuration"""
        try:
            if self.settings.in_cluster:
                configuration = client.Configuration()
                config.load_incluster_config(client_configuration=configuration)
                return client.ApiClient(configuration)
            return config.new_client_from_config(
                config_file=self.settings.kubeconfig_path,
                context=self.settings.default_context,
            )
        except (ConfigException, OSError) as e:
            raise ClusterUnreachableError(f"Failed to load kubeconfig: {e}", source="kubeconfig") from e

    async def _call(self, source: str, func: Callable[..., Any], *args, **kwargs) -> Any:
        """Run a blocking client call in a thread and translate its failures"""
        try:
            return await asyncio.to_thread(
                func, *args, _request_timeout=self.settings.request_timeout_seconds, **kwargs
            )
        except ApiException as e:
            if not e.status:
                raise ClusterUnreachableError(f"Failed to get {source}: {e.reason}", source=source) from e
            raise ClusterApiError(
                f"Failed to get {source}: {e.status} {e.reason}", source=source, status=e.status
            ) from e
        except (HTTPError, OSError) as e:
            raise ClusterUnreachableError(f"Failed to get {source}: {e}", source=source) from e
        except (ValueError, TypeError, AttributeError) as e:
            raise MalformedResponseError(f"Failed to get {source}: {e}", source=source) from e

    async def _list(self, source: str, func: Callable[..., Any], *args, **kwargs) -> List[Dict[str, Any]]:
        result = await self._call(source, func, *args, **kwargs)
        data = self.api_client.sanitize_for_serialization(result)
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise MalformedResponseError(f"Failed to get {source}: response has no items list", source=source)
        return items

    async def list_nodes(self) -> List[Dict[str, Any]]:
        return await self._list("nodes", self.core_v1.list_node)

    async def list_pods(self) -> List[Dict[str, Any]]:
        return await self._list("pods", self.core_v1.list_pod_for_all_namespaces, watch=False)

    async def list_namespaces(self) -> List[Dict[str, Any]]:
        return await self._list("namespaces", self.core_v1.list_namespace)

    async def list_deployments(self) -> List[Dict[str, Any]]:
        return await self._list("deployments", self.apps_v1.list_deployment_for_all_namespaces)

    async def list_statefulsets(self) -> List[Dict[str, Any]]:
        return await self._list("statefulsets", self.apps_v1.list_stateful_set_for_all_namespaces)

    async def list_events(self) -> List[Dict[str, Any]]:
        return await self._list("events", self.core_v1.list_event_for_all_namespaces)

    async def list_persistent_volumes(self) -> List[Dict[str, Any]]:
        return await self._list("persistent_volumes", self.core_v1.list_persistent_volume)

    async def probe_metrics_server(self) -> bool:
        """Check that the metrics-server deployment exists and has ready replicas"""
        name = self.settings.metrics_server_name
        namespace = self.settings.metrics_server_namespace
        try:
            deployment = await self._call(
                "metrics_server", self.apps_v1.read_namespaced_deployment, name, namespace
            )
        except ClusterApiError as e:
            if e.status == 404:
                logger.info(f"Metrics server deployment {namespace}/{name} not found")
            else:
                logger.warning(f"Metrics server probe failed: {e}")
            return False
        except ClusterReadError as e:
            logger.warning(f"Metrics server probe failed: {e}")
            return False

        status = getattr(deployment, "status", None)
        ready_replicas = getattr(status, "ready_replicas", None) or 0
        return ready_replicas > 0

    async def list_node_metrics(self) -> List[Dict[str, Any]]:
        return await self._list(
            "node_metrics",
            self.custom_objects.list_cluster_custom_object,
            group=METRICS_GROUP,
            version=METRICS_VERSION,
            plural="nodes",
        )

    async def list_pod_metrics(self) -> List[Dict[str, Any]]:
        return await self._list(
            "pod_metrics",
            self.custom_objects.list_cluster_custom_object,
            group=METRICS_GROUP,
            version=METRICS_VERSION,
            plural="pods",
        )
