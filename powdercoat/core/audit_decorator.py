import logging
from functools import wraps
from typing import Callable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from powdercoat.models.audit import Audit
from powdercoat.core.metrics import audit_logs_created
from powdercoat.utils.hashing import payload_hash

logger = logging.getLogger(__name__)


def _payload_dict(payload) -> dict:
    if hasattr(payload, "model_dump"):
        return payload.model_dump(exclude_unset=True)
    if isinstance(payload, dict):
        return payload
    return {}


async def log_audit(
    db: AsyncSession,
    user_id: int,
    action: str,
    payload: Optional[dict] = None
) -> None:

    try:
        audit_record = Audit(
            user_id=int(user_id),
            endpoint=str(action),
            payload_hash=payload_hash(_payload_dict(payload or {})),
        )
        db.add(audit_record)
        await db.commit()
        audit_logs_created.labels(action=str(action)).inc()
    except Exception as e:
        await db.rollback()
        logger.error(f"Audit logging failed for action {action}: {e}", exc_info=True)


def audit_log(endpoint_name: str) -> Callable:

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            result = await func(*args, **kwargs)
            
            db: AsyncSession = kwargs.get("db")
            current_user = kwargs.get("current_user")
            
            if not db or not current_user:
                return result
            
            payload = {}
            for key in ["payload", "data", "body"]:
                if key in kwargs:
                    payload = kwargs[key]
                    break
            payload_dict = dict(_payload_dict(payload))
            if "order_id" in kwargs:
                payload_dict["order_id"] = kwargs["order_id"]
            
            await log_audit(db, int(current_user.id), endpoint_name, payload_dict)
            
            return result
        
        return wrapper
    return decorator
