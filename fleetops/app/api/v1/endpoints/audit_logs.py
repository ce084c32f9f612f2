"""
Audit trail API endpoint (Manager only).
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from fleetops.app.db.session import get_db
from fleetops.app.schemas.audit import AuditTrailResponse, AuditLogResponse
from fleetops.app.core.guards import require_role, MANAGERS
from fleetops.app.services.audit import get_audit_trail

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=AuditTrailResponse)
async def list_audit_logs(
    target_type: Optional[str] = Query(None, description="vehicle, driver, trip, maintenance_log, fuel_log, expense, user"),
    target_id: Optional[int] = Query(None, ge=1),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(require_role(MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """Audit entries, most recent first."""
    logs = await get_audit_trail(db, target_type=target_type, target_id=target_id, limit=limit)

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )
