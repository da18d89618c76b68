"""
Logger Module for the Right Angle measurement core.

Per-session event journal, optionally dumped to JSON when a session ends.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from enum import Enum
import json
import time
from pathlib import Path


class LogLevel(Enum):
    """Log levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogCategory(Enum):
    """Log categories."""
    STEP = "step"
    TRIGGER = "trigger"
    CAPTURE = "capture"
    RESULT = "result"
    SYSTEM = "system"


@dataclass
class LogEntry:
    """Log entry."""
    timestamp: float
    level: LogLevel
    category: LogCategory
    message: str
    data: Optional[Dict] = None


@dataclass
class SessionLogger:
    """
    Journal for one measurement session.
    """

    session_id: str
    log_dir: Optional[str] = None
    entries: List[LogEntry] = field(default_factory=list)

    def __post_init__(self):
        if self.log_dir is not None:
            self.log_dir = Path(self.log_dir)
            self.log_dir.mkdir(parents=True, exist_ok=True)

    def log(self, level: LogLevel, category: LogCategory, message: str, data: Optional[Dict] = None):
        """
        Log a message.

        Args:
            level: Log level
            category: Log category
            message: Log message
            data: Optional data
        """
        entry = LogEntry(
            timestamp=time.time(),
            level=level,
            category=category,
            message=message,
            data=data
        )
        self.entries.append(entry)

    def info(self, category: LogCategory, message: str, data: Optional[Dict] = None):
        """Log info message."""
        self.log(LogLevel.INFO, category, message, data)

    def warning(self, category: LogCategory, message: str, data: Optional[Dict] = None):
        """Log warning message."""
        self.log(LogLevel.WARNING, category, message, data)

    def error(self, category: LogCategory, message: str, data: Optional[Dict] = None):
        """Log error message."""
        self.log(LogLevel.ERROR, category, message, data)

    def log_step_change(self, old_step: int, new_step: int, automatic: bool = False):
        """Log a step transition."""
        data = {
            'from': old_step,
            'to': new_step,
            'automatic': automatic,
        }
        self.info(LogCategory.STEP, f"Step {old_step} -> {new_step}", data)

    def log_ignored_trigger(self, trigger: str, step: int, reason: str = ""):
        """Log a trigger that was not valid in the current step."""
        data = {'trigger': trigger, 'step': step}
        if reason:
            data['reason'] = reason
        self.warning(LogCategory.TRIGGER, f"Ignored {trigger} in step {step}", data)

    def log_result(self, result: Dict):
        """Log the final session result."""
        self.info(LogCategory.RESULT, "Session result produced", result)

    def entries_for(self, category: LogCategory) -> List[LogEntry]:
        return [e for e in self.entries if e.category == category]

    def save_session_log(self) -> Optional[Path]:
        """Save session log to file. No-op without a log directory."""
        if self.log_dir is None:
            return None

        log_file = self.log_dir / f"session_{self.session_id}_{int(time.time())}.json"

        log_data = {
            'session_id': self.session_id,
            'timestamp': time.time(),
            'entries': [
                {
                    'timestamp': entry.timestamp,
                    'level': entry.level.value,
                    'category': entry.category.value,
                    'message': entry.message,
                    'data': entry.data
                }
                for entry in self.entries
            ]
        }

        with open(log_file, 'w', encoding='utf-8') as f:
            json.dump(log_data, f, indent=2, ensure_ascii=False)
        return log_file


def create_session_logger(session_id: str, log_dir: Optional[str] = None) -> SessionLogger:
    """
    Create a session logger.

    Args:
        session_id: Session ID
        log_dir: Log directory, None to keep the journal in memory only

    Returns:
        SessionLogger instance
    """
    return SessionLogger(session_id, log_dir)
