import json
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from astex.core.logging import request_id_var
from astex.db.models import AuditLog


def log_audit(db: Session, event: str, details: Dict[str, Any], user_id: Optional[int] = None):
    """Stage an audit entry; committed with the caller's transaction"""
    entry = AuditLog(
        user_id=user_id,
        request_id=request_id_var.get(),
        event_type=event,
        details=json.dumps(details, default=str),
    )
    db.add(entry)
    return entry
