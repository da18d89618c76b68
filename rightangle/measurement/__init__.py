# Measurement Package
# Session state machine, capture window and aggregation for the brace

from .core import (
    MeasurementSessionController, MeasurementConfig, SessionStep, Sample, SessionResult,
)
from .modules import ResultAggregator
from .utils import SessionLogger

__all__ = [
    'MeasurementSessionController',
    'MeasurementConfig',
    'SessionStep',
    'Sample',
    'SessionResult',
    'ResultAggregator',
    'SessionLogger',
]
