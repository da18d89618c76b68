import json
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, String, Text

from rightangle.helpers.enums import MeasurementMode
from rightangle.models.model_base import Base


class MeasurementResult(Base):
    __tablename__ = "measurement_result"

    result_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    session_id = Column(String(36), index=True)
    mode = Column(String(20), nullable=False, default=MeasurementMode.REGULAR.value, index=True)
    rom = Column(Float, nullable=False)
    strength_max = Column(Float, nullable=False, default=0.0)
    strength_avg = Column(Float, nullable=False, default=0.0)
    # [{timestamp, value, relevant}], JSON text keeps the table portable
    samples_json = Column(Text, nullable=False, default="[]")
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    @property
    def samples(self):
        return json.loads(self.samples_json or "[]")

    @classmethod
    def from_session_result(cls, result) -> "MeasurementResult":
        return cls(
            session_id=result.session_id,
            mode=MeasurementMode.from_baseline(result.baseline).value,
            rom=result.rom,
            strength_max=result.strength.max,
            strength_avg=result.strength.avg,
            samples_json=json.dumps([s.to_dict() for s in result.samples]),
        )
