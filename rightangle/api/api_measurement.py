"""
Measurement API endpoints.
Drives measurement sessions over HTTP: device feeds push samples, the
operator UI sends triggers and renders the returned hints.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from rightangle.helpers.exception_handler import CustomException
from rightangle.measurement.core import Sample
from rightangle.schemas.sche_base import DataResponse
from rightangle.schemas.sche_measurement import (
    LiveHistoryResponse,
    MeasurementResultResponse,
    MeasurementSessionStartRequest,
    MeasurementSessionStateResponse,
    SampleItem,
    SamplePushRequest,
)
from rightangle.services.srv_measurement import (
    MeasurementService,
    SessionReply,
    get_measurement_service,
)
from rightangle.services.srv_results import MeasurementResultService

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_state_response(reply: SessionReply) -> MeasurementSessionStateResponse:
    hints = reply.hints
    return MeasurementSessionStateResponse(
        session_id=reply.session_id,
        step=int(hints.step),
        step_name=hints.step.name.lower(),
        instruction={'title': hints.instruction.title, 'text': hints.instruction.text},
        page_title=hints.page_title,
        end_button_text=hints.end_button_text,
        chart_label=hints.chart_label,
        live_rom=hints.live_rom,
        max_rom=hints.max_rom,
        countdown=hints.countdown,
        capture_in_progress=hints.capture_in_progress,
        capture_enabled=hints.capture_enabled,
        live_force_points=[p.to_dict() for p in hints.live_force_points],
        baseline=hints.baseline,
        session_open=hints.session_open,
        notifications=[
            {'title': n.title, 'message': n.message, 'severity': n.severity.value}
            for n in reply.notifications
        ],
        result=reply.result.to_dict() if reply.result else None,
    )


def _to_samples(request: SamplePushRequest) -> List[Sample]:
    return [Sample(timestamp=s.timestamp, value=s.value) for s in request.samples]


@router.post('/sessions', response_model=DataResponse[MeasurementSessionStateResponse])
async def start_session(
    request: MeasurementSessionStartRequest,
    service: MeasurementService = Depends(get_measurement_service),
) -> DataResponse[MeasurementSessionStateResponse]:
    """
    Open a measurement session in step 1 (Preparation).

    **baseline**: the stored result becomes the new reference point.
    """
    reply = await service.start_session(baseline=request.baseline)
    logger.info(f"start_session: {reply.session_id} baseline={request.baseline}")
    return DataResponse().success_response(data=_to_state_response(reply))


@router.get('/sessions/{session_id}', response_model=DataResponse[MeasurementSessionStateResponse])
async def get_session_state(
    session_id: str,
    service: MeasurementService = Depends(get_measurement_service),
) -> DataResponse[MeasurementSessionStateResponse]:
    reply = await service.get_state(session_id)
    return DataResponse().success_response(data=_to_state_response(reply))


@router.post('/sessions/{session_id}/angle-samples', response_model=DataResponse[MeasurementSessionStateResponse])
async def push_angle_samples(
    session_id: str,
    request: SamplePushRequest,
    service: MeasurementService = Depends(get_measurement_service),
) -> DataResponse[MeasurementSessionStateResponse]:
    reply = await service.push_angle_samples(session_id, _to_samples(request))
    return DataResponse().success_response(data=_to_state_response(reply))


@router.post('/sessions/{session_id}/force-samples', response_model=DataResponse[MeasurementSessionStateResponse])
async def push_force_samples(
    session_id: str,
    request: SamplePushRequest,
    service: MeasurementService = Depends(get_measurement_service),
) -> DataResponse[MeasurementSessionStateResponse]:
    reply = await service.push_force_samples(session_id, _to_samples(request))
    return DataResponse().success_response(data=_to_state_response(reply))


@router.post('/sessions/{session_id}/advance', response_model=DataResponse[MeasurementSessionStateResponse])
async def advance(
    session_id: str,
    service: MeasurementService = Depends(get_measurement_service),
) -> DataResponse[MeasurementSessionStateResponse]:
    reply = await service.advance(session_id)
    return DataResponse().success_response(data=_to_state_response(reply))


@router.post('/sessions/{session_id}/start-capture', response_model=DataResponse[MeasurementSessionStateResponse])
async def start_capture(
    session_id: str,
    service: MeasurementService = Depends(get_measurement_service),
) -> DataResponse[MeasurementSessionStateResponse]:
    reply = await service.start_capture(session_id)
    return DataResponse().success_response(data=_to_state_response(reply))


@router.post('/sessions/{session_id}/restart', response_model=DataResponse[MeasurementSessionStateResponse])
async def restart_session(
    session_id: str,
    service: MeasurementService = Depends(get_measurement_service),
) -> DataResponse[MeasurementSessionStateResponse]:
    reply = await service.restart(session_id)
    return DataResponse().success_response(data=_to_state_response(reply))


@router.post('/sessions/{session_id}/end', response_model=DataResponse[MeasurementSessionStateResponse])
async def end_session(
    session_id: str,
    service: MeasurementService = Depends(get_measurement_service),
) -> DataResponse[MeasurementSessionStateResponse]:
    """
    End the session from step 5 (Finalize).

    Outside step 5 the request is ignored and the current state returned.
    """
    try:
        reply = await service.end_session(session_id)
    except CustomException:
        raise
    except Exception as e:
        logger.error(f"end_session error: {str(e)}", exc_info=True)
        raise CustomException(
            http_code=500,
            code='500',
            message=f'Failed to end session: {str(e)}'
        )
    return DataResponse().success_response(data=_to_state_response(reply))


@router.delete('/sessions/{session_id}', response_model=DataResponse[str])
async def discard_session(
    session_id: str,
    service: MeasurementService = Depends(get_measurement_service),
) -> DataResponse[str]:
    """Drop a session without producing a result."""
    await service.close_session(session_id)
    return DataResponse().success_response(data=session_id)


@router.get('/sessions/{session_id}/live', response_model=DataResponse[LiveHistoryResponse])
async def get_live_history(
    session_id: str,
    service: MeasurementService = Depends(get_measurement_service),
) -> DataResponse[LiveHistoryResponse]:
    history = service.live_history(session_id)
    data = LiveHistoryResponse(
        session_id=session_id,
        angle=[SampleItem(timestamp=s.timestamp, value=s.value) for s in history.angle],
        force=[SampleItem(timestamp=s.timestamp, value=s.value) for s in history.force],
    )
    return DataResponse().success_response(data=data)


@router.get('/results', response_model=DataResponse[List[MeasurementResultResponse]])
def list_results(
    baseline: Optional[bool] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    result_service: MeasurementResultService = Depends(),
) -> DataResponse[List[MeasurementResultResponse]]:
    results = result_service.list_results(baseline=baseline, limit=limit)
    return DataResponse().success_response(
        data=[MeasurementResultResponse.model_validate(r) for r in results]
    )


@router.get('/results/baseline/latest', response_model=DataResponse[MeasurementResultResponse])
def get_latest_baseline(
    result_service: MeasurementResultService = Depends(),
) -> DataResponse[MeasurementResultResponse]:
    result = result_service.get_latest_baseline()
    return DataResponse().success_response(data=MeasurementResultResponse.model_validate(result))


@router.get('/results/{result_id}', response_model=DataResponse[MeasurementResultResponse])
def get_result(
    result_id: str,
    result_service: MeasurementResultService = Depends(),
) -> DataResponse[MeasurementResultResponse]:
    result = result_service.get_result(result_id)
    return DataResponse().success_response(data=MeasurementResultResponse.model_validate(result))


@router.delete('/results/{result_id}', response_model=DataResponse[bool])
def delete_result(
    result_id: str,
    result_service: MeasurementResultService = Depends(),
) -> DataResponse[bool]:
    """Soft delete a stored result. It no longer appears in listings or as the latest baseline."""
    logger.info(f"delete_result request: result_id={result_id}")
    return DataResponse().success_response(data=result_service.delete_result(result_id))
