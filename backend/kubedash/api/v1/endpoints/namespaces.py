from fastapi import APIRouter, Depends
from typing import List
from kubedash.api.deps import get_overview_builder
from kubedash.api.v1.endpoints.overview import ERROR_RESPONSES
from kubedash.models.kubernetes import NamespaceRollup
from kubedash.services.overview_builder import ClusterOverviewBuilder

router = APIRouter()


@router.get("/namespaces", response_model=List[NamespaceRollup], responses=ERROR_RESPONSES)
async def list_namespaces(builder: ClusterOverviewBuilder = Depends(get_overview_builder)):
    """Get namespace-level resource usage aggregation"""
    overview = await builder.build()
    return overview.namespaces
