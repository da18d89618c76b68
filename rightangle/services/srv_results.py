import logging
from typing import List, Optional

from fastapi import Depends

from rightangle.db.base import SessionLocal
from rightangle.helpers.enums import MeasurementMode
from rightangle.helpers.exception_handler import CustomException
from rightangle.measurement.core import SessionResult
from rightangle.models.model_measurement_result import MeasurementResult
from rightangle.repository.repo_measurement_result import MeasurementResultRepository

logger = logging.getLogger(__name__)


class DatabaseResultsStore:
    """Results store backed by the measurement_result table."""

    def __init__(self, session_factory=SessionLocal):
        self._session_factory = session_factory

    def save(self, result: SessionResult) -> None:
        with self._session_factory() as db:
            MeasurementResultRepository(db).create_result(MeasurementResult.from_session_result(result))


class MeasurementResultService:
    def __init__(self, result_repo: MeasurementResultRepository = Depends()):
        self.result_repo = result_repo

    def get_result(self, result_id: str) -> MeasurementResult:
        result = self.result_repo.get_result_by_id(result_id)
        if not result:
            raise CustomException(http_code=404, code='404', message=f'Result {result_id} not found')
        return result

    def list_results(self, baseline: Optional[bool] = None, limit: int = 50) -> List[MeasurementResult]:
        mode = None if baseline is None else MeasurementMode.from_baseline(baseline)
        return self.result_repo.list_results(mode=mode, limit=limit)

    def get_latest_baseline(self) -> MeasurementResult:
        result = self.result_repo.get_latest_baseline()
        if not result:
            raise CustomException(http_code=404, code='404', message='No baseline has been recorded yet')
        return result

    def delete_result(self, result_id: str) -> bool:
        result = self.get_result(result_id)
        self.result_repo.soft_delete(result)
        return True
