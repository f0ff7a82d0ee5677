from fastapi import APIRouter

from leasedesk.api.v1.endpoints import leases, public


# Create main API router
api_v1_router = APIRouter()

# Include lease request endpoints (guests may create, everything else needs a token)
api_v1_router.include_router(
    leases.router,
    prefix="/leases",
    tags=["leases"]
)

# Include public endpoints (no auth)
api_v1_router.include_router(
    public.router,
    prefix="/public",
    tags=["public"]
)
