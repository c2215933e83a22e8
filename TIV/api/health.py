from fastapi import APIRouter, Depends

from packages.tiv_core.config import TIVConfig
from packages.tiv_core.time import utc_now
from TIV.api.dependencies import get_config

router = APIRouter()


@router.get("/health")
async def health_check(config: TIVConfig = Depends(get_config)):
    """
    Server Liveness Probe.
    Returns status, version, and current timestamp.
    """
    return {
        "status": "ok",
        "version": config.VERSION,
        "timestamp": utc_now().isoformat(),
    }
