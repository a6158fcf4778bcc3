import pytest
from pydantic import ValidationError

from config import Settings


def _settings(**env) -> Settings:
    env.setdefault("BOT_TOKEN", "123:abc")
    return Settings(_env_file=None, **env)


def test_defaults():
    s = _settings(DATABASE_URL="sqlite+aiosqlite:///./x.db", LOG_FILE="bot.log")

    assert s.env == "dev"
    assert s.feed_page_size == 5
    assert s.admin_chat_id is None
    assert s.log_file == "bot.log"


def test_empty_log_file_means_console_only():
    assert _settings(LOG_FILE="").log_file is None
    assert _settings(LOG_FILE="   ").log_file is None


@pytest.mark.parametrize("size", [0, 51])
def test_feed_page_size_bounds(size):
    with pytest.raises(ValidationError):
        _settings(FEED_PAGE_SIZE=size)


def test_unknown_env_is_rejected():
    with pytest.raises(ValidationError):
        _settings(ENV="staging")
