"""
Measurement Schemas for the Right Angle backend.

Pydantic models for the measurement session API requests and responses.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MeasurementSessionStartRequest(BaseModel):
    """Request model for opening a measurement session."""

    baseline: bool = Field(default=False, description="Session sets the baseline instead of a regular entry")

    model_config = ConfigDict(json_schema_extra={"example": {"baseline": False}})


class SampleItem(BaseModel):
    timestamp: int = Field(..., ge=0, description="Epoch milliseconds")
    value: float = Field(..., description="Degrees for angle samples, pounds for force samples")


class SamplePushRequest(BaseModel):
    """Batch of samples from the device feed, in arrival order."""

    samples: List[SampleItem] = Field(..., min_length=1)

    model_config = ConfigDict(json_schema_extra={
        "example": {"samples": [{"timestamp": 1718000000100, "value": 18.5}]}
    })


class TaggedSampleItem(SampleItem):
    relevant: bool = True


class StepInstructionItem(BaseModel):
    title: str
    text: str


class NotificationItem(BaseModel):
    title: str
    message: str
    severity: str


class StrengthItem(BaseModel):
    max: float
    avg: float


class SessionResultItem(BaseModel):
    session_id: Optional[str] = None
    rom: float
    strength: StrengthItem
    samples: List[TaggedSampleItem] = []
    baseline: bool = False


class MeasurementSessionStateResponse(BaseModel):
    """Presentation hints for the current session state."""

    session_id: str
    step: int = Field(..., ge=1, le=5)
    step_name: str
    instruction: StepInstructionItem
    page_title: str
    end_button_text: str
    chart_label: str
    live_rom: Optional[float] = None
    max_rom: Optional[float] = None
    countdown: int = 0
    capture_in_progress: bool = False
    capture_enabled: bool = False
    live_force_points: List[TaggedSampleItem] = []
    baseline: bool = False
    session_open: bool = True
    notifications: List[NotificationItem] = []
    result: Optional[SessionResultItem] = None


class LiveHistoryResponse(BaseModel):
    session_id: str
    angle: List[SampleItem] = []
    force: List[SampleItem] = []


class MeasurementResultResponse(BaseModel):
    """Stored result as returned by the results endpoints."""

    model_config = ConfigDict(from_attributes=True)

    result_id: str
    session_id: Optional[str] = None
    mode: str
    rom: float
    strength_max: float
    strength_avg: float
    samples: List[TaggedSampleItem] = []
    created_at: Optional[datetime] = None
