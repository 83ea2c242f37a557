from fastapi import APIRouter

from magic_link_engine.api.v1.public import magic_link
from magic_link_engine.core.health import check_mongodb, check_postgres, check_redis

api_router = APIRouter()

api_router.include_router(magic_link.router, prefix="/auth/magic-link", tags=["magic-link"])


@api_router.get("/health")
async def health_check() -> dict[str, str]:
    try:
        await check_postgres()
        await check_redis()
        await check_mongodb()
        return {"status": "healthy"}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}
