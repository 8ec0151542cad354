from fastapi import APIRouter, Depends
from kubedash.api.deps import get_overview_builder
from kubedash.api.v1.endpoints.overview import ERROR_RESPONSES
from kubedash.models.kubernetes import WorkloadsOverview
from kubedash.services.overview_builder import ClusterOverviewBuilder

router = APIRouter()


@router.get("/workloads", response_model=WorkloadsOverview, responses=ERROR_RESPONSES)
async def list_workloads(builder: ClusterOverviewBuilder = Depends(get_overview_builder)):
    """Get deployments and statefulsets with their readiness"""
    return await builder.build_workloads()
