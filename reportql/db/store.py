"""SQLAlchemy-backed report store."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from reportql.core.reporting.store import StoredReport, parse_config_json
from reportql.db.models import Report


def to_stored_report(row: Report) -> StoredReport:
    return StoredReport(
        id=row.id,
        name=row.name,
        source_table=row.source_table,
        visualization_type=row.visualization_type,
        config=parse_config_json(row.config_json),
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlReportStore:
    """Reads persisted reports from the `reports` table."""

    def __init__(self, engine: Engine):
        self._session_factory = sessionmaker(bind=engine, autoflush=False)

    def get_report(self, report_id: int) -> StoredReport | None:
        with self._session_factory() as session:
            row = session.get(Report, report_id)
            return to_stored_report(row) if row is not None else None

    def list_reports(self) -> list[StoredReport]:
        """All reports, newest first."""
        with self._session_factory() as session:
            rows = session.scalars(
                select(Report).order_by(Report.created_at.desc(), Report.id.desc())
            ).all()
            return [to_stored_report(row) for row in rows]
