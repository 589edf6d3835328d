"""Content reports filed by users and triaged by editors."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session, selectinload

from .. import models, schemas
from ..errors import NotFound
from ..pagination import Pagination, paginate

logger = logging.getLogger(__name__)


class ReportService:
    def create(self, db: Session, reporter: models.User, payload: schemas.ReportCreate) -> models.Report:
        report = models.Report(
            reporter_id=reporter.id,
            target_type=payload.target_type,
            target_id=payload.target_id,
            reason=payload.reason.strip(),
            status="pending",
        )
        db.add(report)
        db.commit()
        db.refresh(report)
        logger.info(
            f"User {reporter.id} reported {payload.target_type} {payload.target_id} (report {report.id})"
        )
        return report

    def list_reports(
        self, db: Session, pagination: Pagination, status: str | None = None
    ) -> tuple[list[models.Report], int]:
        query = db.query(models.Report).options(selectinload(models.Report.reporter))
        if status:
            query = query.filter(models.Report.status == status)
        query = query.order_by(models.Report.created_at.desc(), models.Report.id.desc())
        return paginate(query, pagination)

    def update_status(self, db: Session, actor: models.User, report_id: int, status: str) -> models.Report:
        report = db.query(models.Report).filter(models.Report.id == report_id).first()
        if not report:
            raise NotFound("Report not found")
        report.status = status
        db.commit()
        db.refresh(report)
        logger.info(f"Report {report_id} marked {status} by user {actor.id}")
        return report
