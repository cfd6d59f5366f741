from datetime import datetime
from typing import Any

from pydantic import BaseModel


class ActionHistoryPublic(BaseModel):
    id: str
    action_type: str
    entity_type: str
    entity_id: str
    entity_name: str
    details: dict[str, Any]
    performed_by: str | None = None
    user_id: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True
