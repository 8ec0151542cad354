from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, computed_field

from kubedash.utils.formatters import figure_percentage, percentage
from kubedash.utils.quantity import Dimension, Quantity


class ResourceFigure(BaseModel):
    """Usage, capacity, requests and limits of one dimension over a scope.

    used is None when no usage source exists (metrics-server unavailable),
    which is distinct from a measured zero. total is None for scopes without
    a capacity concept, such as namespaces.
    """
    dimension: Dimension
    used: Optional[Quantity] = None
    total: Optional[Quantity] = None
    requested: Quantity
    limited: Quantity

    @computed_field
    @property
    def used_percentage(self) -> Optional[float]:
        return figure_percentage(self.used, self.total)

    @computed_field
    @property
    def requested_percentage(self) -> Optional[float]:
        return figure_percentage(self.requested, self.total)

    @computed_field
    @property
    def limited_percentage(self) -> Optional[float]:
        return figure_percentage(self.limited, self.total)


class StorageFigure(BaseModel):
    """Persistent volume capacity. bound is capacity claimed by bound volumes, not sampled usage."""
    total: Quantity
    bound: Quantity

    @computed_field
    @property
    def bound_percentage(self) -> float:
        return percentage(self.bound, self.total)


class NodeSnapshot(BaseModel):
    """Point-in-time view of a single node"""
    name: str
    role: str
    version: Optional[str] = None
    status: str
    ready: bool
    unschedulable: bool = False
    cpu: ResourceFigure
    memory: ResourceFigure
    cpu_allocatable: Quantity
    memory_allocatable: Quantity
    pod_count: int
    pod_capacity: int


class NamespaceRollup(BaseModel):
    """Namespace resource aggregation"""
    name: str
    status: Optional[str] = None
    pods: int
    deployments: int
    statefulsets: int
    cpu: ResourceFigure
    memory: ResourceFigure


class NodeCounts(BaseModel):
    total: int
    ready: int


class PodCounts(BaseModel):
    total: int
    running: int
    pending: int
    failed: int
    other: int
    capacity: int


class DeploymentCounts(BaseModel):
    total: int
    available: int


class EventCounts(BaseModel):
    """Warning and error events seen within the recent window"""
    warnings: int
    errors: int


class ClusterRollup(BaseModel):
    """Cluster-wide resource summary"""
    nodes: NodeCounts
    cpu: ResourceFigure
    memory: ResourceFigure
    pods: PodCounts
    namespaces: int
    deployments: DeploymentCounts
    events: EventCounts
    storage: Optional[StorageFigure] = None


class ClusterOverview(BaseModel):
    """Everything the dashboard renders from a single build"""
    cluster: ClusterRollup
    nodes: List[NodeSnapshot]
    namespaces: List[NamespaceRollup]
    metrics_available: bool
    generated_at: datetime


class WorkloadInfo(BaseModel):
    """Deployment or statefulset listing entry"""
    kind: str
    namespace: Optional[str] = None
    name: Optional[str] = None
    ready: str
    image: Optional[str] = None
    created_at: Optional[datetime] = None
    age: str
    status: str


class WorkloadsOverview(BaseModel):
    deployments: List[WorkloadInfo]
    statefulsets: List[WorkloadInfo]


class ErrorResponse(BaseModel):
    """Error response model"""
    error: str
    detail: Optional[str] = None
    source: Optional[str] = None
