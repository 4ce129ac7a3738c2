from typing import Optional, Dict, Any
from pydantic import BaseModel


class AuditLogCreate(BaseModel):
    action_type: str
    status: str
    target_type: str
    target_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
