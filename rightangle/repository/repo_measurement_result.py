import logging
from typing import List, Optional

from fastapi import Depends
from sqlalchemy import desc

from rightangle.db.base import get_db
from rightangle.helpers.enums import MeasurementMode
from rightangle.models.model_measurement_result import MeasurementResult

logger = logging.getLogger(__name__)


class MeasurementResultRepository:
    def __init__(self, db_session=Depends(get_db)):
        self.db = db_session

    def create_result(self, result: MeasurementResult) -> MeasurementResult:
        self.db.add(result)
        self.db.commit()
        self.db.refresh(result)
        logger.info(f"Stored {result.mode} result {result.result_id} for session {result.session_id}")
        return result

    def get_result_by_id(self, result_id: str) -> Optional[MeasurementResult]:
        return self.db.query(MeasurementResult).filter(
            MeasurementResult.result_id == result_id,
            MeasurementResult.is_deleted.is_(False)
        ).first()

    def list_results(self, mode: Optional[MeasurementMode] = None, limit: int = 50) -> List[MeasurementResult]:
        query = self.db.query(MeasurementResult).filter(MeasurementResult.is_deleted.is_(False))
        if mode is not None:
            query = query.filter(MeasurementResult.mode == mode.value)
        return query.order_by(desc(MeasurementResult.created_at)).limit(limit).all()

    def get_latest_baseline(self) -> Optional[MeasurementResult]:
        return self.db.query(MeasurementResult).filter(
            MeasurementResult.mode == MeasurementMode.BASELINE.value,
            MeasurementResult.is_deleted.is_(False)
        ).order_by(desc(MeasurementResult.created_at)).first()

    def soft_delete(self, result: MeasurementResult) -> MeasurementResult:
        """Hide a result from every query without dropping the row."""
        result.is_deleted = True
        self.db.commit()
        self.db.refresh(result)
        logger.info(f"Soft deleted result {result.result_id}")
        return result
