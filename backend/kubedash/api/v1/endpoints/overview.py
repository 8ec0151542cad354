from fastapi import APIRouter, Depends
from kubedash.api.deps import get_overview_builder
from kubedash.models.kubernetes import ClusterOverview, ClusterRollup, ErrorResponse
from kubedash.services.overview_builder import ClusterOverviewBuilder

router = APIRouter()

ERROR_RESPONSES = {
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.get("/overview", response_model=ClusterOverview, responses=ERROR_RESPONSES)
async def get_overview(builder: ClusterOverviewBuilder = Depends(get_overview_builder)):
    """Get cluster rollup, node snapshots and namespace rollups in one build"""
    return await builder.build()


@router.get("/overview/summary", response_model=ClusterRollup, responses=ERROR_RESPONSES)
async def get_cluster_summary(builder: ClusterOverviewBuilder = Depends(get_overview_builder)):
    """Get overall cluster resource usage summary"""
    overview = await builder.build()
    return overview.cluster
