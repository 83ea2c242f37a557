import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from magic_link_engine.schemas.audit_log import AuditLogBase

logger = logging.getLogger(__name__)

MAGIC_LINK_ISSUED = "magic_link.issued"
MAGIC_LINK_REDEEMED = "magic_link.redeemed"
MAGIC_LINK_REJECTED = "magic_link.rejected"


class AuditService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db["audit_logs"]

    async def log(
        self,
        *,
        action: str,
        resource: str,
        actor_id: str | None = None,
        resource_id: str | None = None,
        metadata: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        status: str = "success",
    ) -> None:
        event = AuditLogBase(
            actor_id=actor_id,
            action=action,
            resource=resource,
            resource_id=resource_id,
            metadata=metadata or {},
            ip_address=ip_address,
            user_agent=user_agent,
            status=status,
        )
        document = event.model_dump()
        document.update({"_id": str(uuid.uuid4()), "created_at": datetime.now(UTC)})
        try:
            await self.collection.insert_one(document)
        except Exception as exc:
            # Best effort: auditing never fails the request
            logger.warning(f"Failed to write audit event {action}: {exc}")
