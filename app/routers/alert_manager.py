# app/routers/alert_manager.py
"""
Action-style entrypoint used by the dashboard.
POST /alert-manager {action: "evaluate", locationId}
POST /alert-manager {action: "update", alertId, status}   (bearer token required)
Errors come back as HTTP 400 {success: false, error}; auth failures as 401.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.alert import AlertManagerRequest
from app.services.alert_service import evaluate_location, update_alert_status
from app.services.auth_service import resolve_user
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


def _error(message: str, code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse(status_code=code, content={"success": False, "error": message})


@router.post("/alert-manager", summary="Evaluate a location or update an alert's status")
async def alert_manager(body: AlertManagerRequest, request: Request, db: Session = Depends(get_db)):
    logger.info(f"[Alert Manager] action={body.action} location={body.location_id} "
                f"alert={body.alert_id} status={body.status}")
    try:
        if body.action == "evaluate":
            if not body.location_id:
                return _error("locationId is required")
            return await evaluate_location(db, body.location_id)

        if body.action == "update":
            # Identity is checked before anything is read or written
            user = await resolve_user(request.headers.get("Authorization"))
            if body.alert_id is None or body.status is None:
                return _error("alertId and status are required")
            await update_alert_status(db, body.alert_id, body.status, user.id)
            return {"success": True, "message": "Alert updated successfully"}

        return _error("Invalid action")

    except HTTPException as e:
        return _error(str(e.detail), e.status_code)
    except (LookupError, ValueError) as e:
        logger.warning(f"[Alert Manager] {e}")
        return _error(str(e))
