from datetime import datetime, timezone

from fastapi import APIRouter

from dayfuse.configs import configs

router = APIRouter(tags=["system"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness check for deployment monitoring."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "env": configs.Env,
        "port": str(configs.Port),
    }
