import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..config import settings
from ..services.ownership_migration import check_migration_status, migrate_properties_to_ownership_model

logger = logging.getLogger(__name__)

router = APIRouter()


def require_admin_token(x_admin_token: Optional[str] = Header(default=None)) -> None:
    if not settings.admin_token:
        # Endpoint is hidden unless an admin token is configured.
        raise HTTPException(status_code=404, detail="Not Found")
    if not x_admin_token or not hmac.compare_digest(
        x_admin_token.encode("utf-8", "replace"), settings.admin_token.encode("utf-8")
    ):
        raise HTTPException(status_code=403, detail="Invalid admin token")


@router.get("/migrate-ownership")
def migrate_ownership(
    db: Session = Depends(get_db),
    _: None = Depends(require_admin_token),
):
    status = check_migration_status(db)
    if not status.success:
        return JSONResponse(status_code=500, content={"error": status.error})

    if status.needs_migration == 0:
        return {"message": "No properties need migration", **status.model_dump()}

    logger.info("Running ownership migration for %d properties", status.needs_migration)
    result = migrate_properties_to_ownership_model(db)
    if not result.success:
        return JSONResponse(status_code=500, content=result.model_dump())
    return result.model_dump()
