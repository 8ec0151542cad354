from fastapi import APIRouter
from .endpoints import overview, nodes, namespaces, workloads

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(overview.router, tags=["overview"])
api_router.include_router(nodes.router, tags=["nodes"])
api_router.include_router(namespaces.router, tags=["namespaces"])
api_router.include_router(workloads.router, tags=["workloads"])
