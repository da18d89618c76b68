import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../'))
load_dotenv(os.path.join(BASE_DIR, '.env'))


class Settings(BaseSettings):
    PROJECT_NAME: str = os.getenv('PROJECT_NAME', 'THE RIGHT ANGLE')
    API_PREFIX: str = '/api'
    BACKEND_CORS_ORIGINS: List[str] = ['*']
    DATABASE_URL: str = os.getenv('SQL_DATABASE_URL', 'sqlite:///' + os.path.join(BASE_DIR, 'rightangle.db'))
    LOGGING_CONFIG_FILE: str = os.path.join(BASE_DIR, 'logging.ini')

    # Measurement session settings
    CAPTURE_DURATION_MS: int = int(os.getenv('CAPTURE_DURATION_MS', '3000'))
    COUNTDOWN_SECONDS: int = int(os.getenv('COUNTDOWN_SECONDS', '3'))
    COUNTDOWN_TICK_SECONDS: float = float(os.getenv('COUNTDOWN_TICK_SECONDS', '1.0'))
    ROM_FALLBACK_DEG: float = float(os.getenv('ROM_FALLBACK_DEG', '90'))  # used when no angle was seen
    STRICT_CAPTURE_WINDOW: bool = os.getenv('STRICT_CAPTURE_WINDOW', 'false').lower() == 'true'
    LIVE_HISTORY_SIZE: int = int(os.getenv('LIVE_HISTORY_SIZE', '500'))
    MEASUREMENT_LOG_DIR: Optional[str] = os.getenv('MEASUREMENT_LOG_DIR')


settings = Settings()
