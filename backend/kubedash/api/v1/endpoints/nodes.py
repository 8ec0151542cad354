from fastapi import APIRouter, Depends
from typing import List
from kubedash.api.deps import get_overview_builder
from kubedash.api.v1.endpoints.overview import ERROR_RESPONSES
from kubedash.models.kubernetes import NodeSnapshot
from kubedash.services.overview_builder import ClusterOverviewBuilder

router = APIRouter()


@router.get("/nodes", response_model=List[NodeSnapshot], responses=ERROR_RESPONSES)
async def list_nodes(builder: ClusterOverviewBuilder = Depends(get_overview_builder)):
    """Get node resource usage, capacity, requests and limits"""
    overview = await builder.build()
    return overview.nodes
