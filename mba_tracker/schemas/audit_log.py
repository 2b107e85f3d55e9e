from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    entity_type: str
    entity_id: str
    action: str
    changes: Optional[dict[str, dict[str, Any]]] = None
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    created_at: datetime
