import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rightangle.helpers.enums import MeasurementMode
from rightangle.helpers.exception_handler import CustomException
from rightangle.measurement.core import Sample, SessionResult, StrengthSummary, TaggedSample
from rightangle.models import Base
from rightangle.repository.repo_measurement_result import MeasurementResultRepository
from rightangle.services.srv_results import DatabaseResultsStore, MeasurementResultService


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)


def _result(baseline=False, session_id="s-1"):
    return SessionResult(
        rom=95.0,
        strength=StrengthSummary(max=25.0, avg=17.67),
        samples=[TaggedSample(Sample(1000, 10.0), True), TaggedSample(Sample(5000, 3.0), False)],
        baseline=baseline,
        session_id=session_id,
    )


def test_store_persists_session_result(session_factory):
    DatabaseResultsStore(session_factory).save(_result())

    with session_factory() as db:
        rows = MeasurementResultRepository(db).list_results()
        assert len(rows) == 1
        row = rows[0]
        assert row.session_id == "s-1"
        assert row.mode == MeasurementMode.REGULAR.value
        assert row.rom == 95.0
        assert row.strength_max == 25.0
        assert row.strength_avg == 17.67
        assert row.samples == [
            {'timestamp': 1000, 'value': 10.0, 'relevant': True},
            {'timestamp': 5000, 'value': 3.0, 'relevant': False},
        ]


def test_list_filters_by_mode(session_factory):
    store = DatabaseResultsStore(session_factory)
    store.save(_result(session_id="regular"))
    store.save(_result(baseline=True, session_id="baseline"))

    with session_factory() as db:
        service = MeasurementResultService(MeasurementResultRepository(db))
        assert len(service.list_results()) == 2
        assert [r.session_id for r in service.list_results(baseline=True)] == ["baseline"]
        assert [r.session_id for r in service.list_results(baseline=False)] == ["regular"]
        assert service.get_latest_baseline().session_id == "baseline"


def test_missing_rows_raise_404(session_factory):
    with session_factory() as db:
        service = MeasurementResultService(MeasurementResultRepository(db))
        with pytest.raises(CustomException) as exc_info:
            service.get_latest_baseline()
        assert exc_info.value.http_code == 404
        with pytest.raises(CustomException):
            service.get_result("does-not-exist")


def test_deleted_results_are_hidden(session_factory):
    DatabaseResultsStore(session_factory).save(_result(baseline=True, session_id="baseline"))

    with session_factory() as db:
        service = MeasurementResultService(MeasurementResultRepository(db))
        result_id = service.list_results()[0].result_id
        assert service.delete_result(result_id) is True

        assert service.list_results() == []
        with pytest.raises(CustomException):
            service.get_result(result_id)
        with pytest.raises(CustomException):
            service.get_latest_baseline()
        with pytest.raises(CustomException):
            service.delete_result(result_id)
