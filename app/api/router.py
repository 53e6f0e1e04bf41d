from fastapi import APIRouter
from app.modules.bhajans.router import router as bhajans_router

api_router = APIRouter()
api_router.include_router(bhajans_router, prefix="/bhajans", tags=["bhajans"])

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
