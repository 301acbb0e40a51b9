from fastapi import APIRouter

from app.ai.client import llm_enabled

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check the health status of the application.")
async def health_check():
    return {"status": "healthy", "llm_enabled": llm_enabled()}
