from typing import Any

from pydantic import BaseModel


class AuditLogBase(BaseModel):
    actor_id: str | None = None
    action: str
    resource: str
    resource_id: str | None = None
    metadata: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    status: str = "success"  # success, failure
