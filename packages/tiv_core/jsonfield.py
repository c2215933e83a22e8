import json
from typing import Any, Callable, Optional

from packages.tiv_core.logging import get_logger

logger = get_logger("tiv.core.jsonfield")


def safe_json_loads(value: Optional[str], default_factory: Callable[[], Any], field: str = "") -> Any:
    """
    Parse a JSON text column, falling back to an empty default.
    A broken field must never break an unrelated read path.
    """
    if not value:
        return default_factory()
    try:
        return json.loads(value)
    except (TypeError, ValueError) as e:
        logger.warning(f"Unparseable JSON in field '{field}': {e}")
        return default_factory()


def json_dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)
