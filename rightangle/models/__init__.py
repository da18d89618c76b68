from rightangle.models.model_base import Base
from rightangle.models.model_measurement_result import MeasurementResult

__all__ = ['Base', 'MeasurementResult']
