"""
Resource aggregation module.
Sums parsed quantities over containers, pods, nodes and namespaces into
ResourceFigures.

Inputs are plain dicts in Kubernetes API JSON shape, as returned by the
cluster read port. Sums are order independent, so the collections may arrive
in any order.
"""

from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple

from kubedash.models.kubernetes import ResourceFigure
from kubedash.utils.quantity import Dimension, Quantity, parse_quantity, sum_quantities


class Scope(str, Enum):
    NODE = "node"
    NAMESPACE = "namespace"
    CLUSTER = "cluster"


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _items(value: Any) -> Iterator[Dict[str, Any]]:
    if isinstance(value, (list, tuple)):
        for item in value:
            if isinstance(item, dict):
                yield item


def node_quantity(node: Dict[str, Any], field: str, dimension: Dimension) -> Quantity:
    """Read a node status field such as capacity or allocatable for one dimension."""
    status = _mapping(node.get("status"))
    return parse_quantity(_mapping(status.get(field)).get(dimension.value), dimension)


def container_quantity(container: Dict[str, Any], kind: str, dimension: Dimension) -> Quantity:
    """Declared request or limit of a container; zero when it declares none."""
    resources = _mapping(container.get("resources"))
    return parse_quantity(_mapping(resources.get(kind)).get(dimension.value), dimension)


def sum_container_resources(pods: Iterable[Dict[str, Any]], kind: str, dimension: Dimension) -> Quantity:
    """
    Sum a resource declaration over every container of every pod.

    Args:
        pods: Pods in scope
        kind: "requests" or "limits"
        dimension: Dimension to sum

    Returns:
        Quantity: Total declared amount
    """
    return sum_quantities(
        (
            container_quantity(container, kind, dimension)
            for pod in pods
            for container in _items(_mapping(pod.get("spec")).get("containers"))
        ),
        dimension,
    )


def _sample_usages(sample: Dict[str, Any], dimension: Dimension) -> Iterator[Quantity]:
    # Pod samples carry usage per container, node samples carry it at the top level.
    if "containers" in sample:
        for container in _items(sample.get("containers")):
            yield parse_quantity(_mapping(container.get("usage")).get(dimension.value), dimension)
    else:
        yield parse_quantity(_mapping(sample.get("usage")).get(dimension.value), dimension)


def sum_usage(samples: Optional[Iterable[Dict[str, Any]]], dimension: Dimension) -> Optional[Quantity]:
    """
    Sum observed usage over metrics-server samples.

    Returns None when there is no usage source at all (samples is None).
    An empty collection is a measured zero.
    """
    if samples is None:
        return None
    return sum_quantities(
        (usage for sample in samples for usage in _sample_usages(sample, dimension)),
        dimension,
    )


def aggregate(
    scope: Scope,
    dimension: Dimension,
    nodes: Iterable[Dict[str, Any]] = (),
    pods: Iterable[Dict[str, Any]] = (),
    samples: Optional[Iterable[Dict[str, Any]]] = None,
) -> ResourceFigure:
    """
    Build the ResourceFigure of one dimension for a scope.

    Args:
        scope: Scope being aggregated; namespaces get no total
        dimension: Dimension to aggregate
        nodes: Nodes contributing capacity
        pods: Pods contributing requests and limits
        samples: Metrics samples contributing usage, None when unmeasured

    Returns:
        ResourceFigure: Aggregated figure
    """
    pods = list(pods)
    total = None
    if scope is not Scope.NAMESPACE:
        total = sum_quantities((node_quantity(node, "capacity", dimension) for node in nodes), dimension)

    return ResourceFigure(
        dimension=dimension,
        used=sum_usage(samples, dimension),
        total=total,
        requested=sum_container_resources(pods, "requests", dimension),
        limited=sum_container_resources(pods, "limits", dimension),
    )


def aggregate_pair(
    scope: Scope,
    nodes: Iterable[Dict[str, Any]] = (),
    pods: Iterable[Dict[str, Any]] = (),
    samples: Optional[Iterable[Dict[str, Any]]] = None,
) -> Tuple[ResourceFigure, ResourceFigure]:
    """CPU and memory figures of a scope."""
    nodes = list(nodes)
    pods = list(pods)
    samples = list(samples) if samples is not None else None
    return (
        aggregate(scope, Dimension.CPU, nodes, pods, samples),
        aggregate(scope, Dimension.MEMORY, nodes, pods, samples),
    )
