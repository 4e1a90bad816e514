from fastapi import APIRouter
from . import auth, entries, scenarios, profile, projections, milestones, tax

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(entries.router, prefix="/entries", tags=["entries"])
api_router.include_router(scenarios.router, prefix="/scenarios", tags=["scenarios"])
api_router.include_router(profile.router, prefix="/profile", tags=["profile"])
api_router.include_router(projections.router, prefix="/projections", tags=["projections"])
api_router.include_router(milestones.router, prefix="/milestones", tags=["milestones"])
api_router.include_router(tax.router, prefix="/tax", tags=["tax"])
