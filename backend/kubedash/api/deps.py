from fastapi import Depends
from functools import lru_cache
from kubedash.core.config import settings
from kubedash.services.kubernetes_service import KubernetesService
from kubedash.services.overview_builder import ClusterOverviewBuilder
from kubedash.services.read_port import ClusterReadPort


@lru_cache()
def get_read_port() -> ClusterReadPort:
    """Shared Kubernetes client, created on first use"""
    return KubernetesService(settings)


def get_overview_builder(read_port: ClusterReadPort = Depends(get_read_port)) -> ClusterOverviewBuilder:
    return ClusterOverviewBuilder.from_settings(read_port, settings)
