"""
Remote data store: the relational source of truth (PostgreSQL in production,
any SQLAlchemy URL works). All methods raise SQLAlchemyError on failure; the
persistence gateway decides what a failure means.
"""
import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from core.database import Base, build_engine, build_session_factory
from models.damage_report import DamageReportRecord
from models.unit import UnitRecord, UnitStatus
from schemas.damage_report import DamageReport
from schemas.unit import Unit

log = logging.getLogger(__name__)

REMOTE_TABLES = [UnitRecord.__table__, DamageReportRecord.__table__]


def column_values(values: dict[str, Any]) -> dict[str, Any]:
    """Enums are stored by value in plain string columns."""
    return {key: (value.value if isinstance(value, Enum) else value) for key, value in values.items()}


def unit_record(unit: Unit) -> UnitRecord:
    return UnitRecord(**column_values(unit.model_dump()))


def report_record(report: DamageReport) -> DamageReportRecord:
    return DamageReportRecord(**column_values(report.model_dump()))


class RemoteDataStore:
    def __init__(self, database_url: Optional[str] = None, engine: Optional[Engine] = None):
        if engine is None:
            if not database_url:
                raise ValueError("RemoteDataStore needs a database_url or an engine")
            engine = build_engine(database_url)
        self.engine = engine
        self.SessionLocal = build_session_factory(engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()

    # ---------- schema & seeding ----------

    def ensure_schema(self) -> None:
        """CREATE TABLE IF NOT EXISTS for both tables."""
        Base.metadata.create_all(bind=self.engine, tables=REMOTE_TABLES, checkfirst=True)

    def count_units(self) -> int:
        with self.session() as db:
            return db.query(UnitRecord).count()

    def seed(self, units: list[Unit], reports: list[DamageReport]) -> None:
        with self.session() as db:
            db.add_all([unit_record(unit) for unit in units])
            for report in reports:
                db.merge(report_record(report))
        log.info("Seeded remote store with %s units and %s reports", len(units), len(reports))

    # ---------- reads ----------

    def fetch_units(self) -> list[Unit]:
        with self.session() as db:
            records = db.query(UnitRecord).order_by(UnitRecord.id.asc()).all()
            return [Unit.model_validate(record) for record in records]

    def fetch_reports(self) -> list[DamageReport]:
        with self.session() as db:
            records = db.query(DamageReportRecord).order_by(
                DamageReportRecord.timestamp.desc(),
                DamageReportRecord.id.desc(),
            ).all()
            return [DamageReport.model_validate(record) for record in records]

    # ---------- writes ----------

    def upsert_report(self, report: DamageReport) -> None:
        """Insert, or overwrite the row with the same id (replays never duplicate)."""
        with self.session() as db:
            db.merge(report_record(report))

    def update_report(self, report_id: str, values: dict[str, Any]) -> bool:
        """Apply column updates; False when no row has that id."""
        with self.session() as db:
            matched = db.query(DamageReportRecord).filter(
                DamageReportRecord.id == report_id
            ).update(column_values(values), synchronize_session=False)
            return matched > 0

    def update_unit_status(self, unit_id: str, status: UnitStatus) -> bool:
        with self.session() as db:
            matched = db.query(UnitRecord).filter(
                UnitRecord.id == unit_id
            ).update({UnitRecord.status: UnitStatus(status).value}, synchronize_session=False)
            return matched > 0
