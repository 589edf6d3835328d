"""Content report endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, require_editor
from ..container import Services
from ..deps import get_db, get_services
from ..pagination import Pagination, get_pagination

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("", response_model=schemas.Report, status_code=status.HTTP_201_CREATED)
def create_report(
    payload: schemas.ReportCreate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> models.Report:
    """Report a post, comment or user."""
    return services.reports.create(db, current_user, payload)


@router.get("", response_model=schemas.Page[schemas.Report])
def list_reports(
    status_filter: schemas.ReportStatusName | None = Query(None, alias="status"),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    _editor: models.User = Depends(require_editor),
):
    reports, total = services.reports.list_reports(db, pagination, status=status_filter)
    return pagination.page_response(reports, total)


@router.put("/{report_id}", response_model=schemas.Report)
def update_report(
    report_id: int,
    payload: schemas.ReportUpdate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(require_editor),
) -> models.Report:
    return services.reports.update_status(db, current_user, report_id, payload.status)
