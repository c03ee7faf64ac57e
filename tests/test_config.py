import pytest
from pydantic import ValidationError

from booking_cancellation.core.config import Settings


def test_unknown_display_timezone_is_rejected_at_load():
    with pytest.raises(ValidationError, match="unknown timezone"):
        Settings(DISPLAY_TIMEZONE="Mars/Olympus")


def test_display_timezone_default():
    assert Settings().DISPLAY_TIMEZONE == "Europe/Paris"


def test_heroku_style_database_url_is_normalized():
    cfg = Settings(DATABASE_URL="postgres://u:p@db:5432/club")
    assert cfg.DATABASE_URL == "postgresql+psycopg2://u:p@db:5432/club"
