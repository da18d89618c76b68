import json

from rightangle.measurement.utils import create_session_logger
from rightangle.measurement.utils.logger import LogCategory, LogLevel


def test_journal_stays_in_memory_without_log_dir():
    journal = create_session_logger("abc")
    journal.info(LogCategory.SYSTEM, "Session started")
    assert journal.save_session_log() is None
    assert len(journal.entries) == 1


def test_ignored_trigger_is_a_warning():
    journal = create_session_logger("abc")
    journal.log_ignored_trigger("advance", 3, "capture in progress")
    entry = journal.entries_for(LogCategory.TRIGGER)[0]
    assert entry.level == LogLevel.WARNING
    assert entry.data == {'trigger': 'advance', 'step': 3, 'reason': 'capture in progress'}


def test_save_session_log_writes_json(tmp_path):
    journal = create_session_logger("abc", str(tmp_path / "logs"))
    journal.log_step_change(3, 4, automatic=True)
    journal.log_result({'rom': 95.0})

    log_file = journal.save_session_log()

    assert log_file.exists()
    data = json.loads(log_file.read_text(encoding='utf-8'))
    assert data['session_id'] == "abc"
    assert [e['category'] for e in data['entries']] == ['step', 'result']
    assert data['entries'][0]['data'] == {'from': 3, 'to': 4, 'automatic': True}
