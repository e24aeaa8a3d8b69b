"""Admin endpoints: cross-user dashboard and generic record delete."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from saveit.admin.service import build_dashboard, delete_record
from saveit.api.middleware.auth import require_admin
from saveit.api.responses import ok

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.api_route("/dashboard", methods=["GET", "POST"])
def dashboard(admin_email: str = Depends(require_admin)):
    return ok(**build_dashboard(admin_email))


@router.delete("/{collection}/{record_id}")
def delete(collection: str, record_id: str, admin_email: str = Depends(require_admin)):
    delete_record(collection, record_id)
    return ok(message=f"{collection} item deleted successfully")
