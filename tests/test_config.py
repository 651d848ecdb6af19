"""
NoteApp Backend - Settings and Error Kind Tests
================================================
"""

import pydantic
import pytest

from noteapp.config import Settings
from noteapp.exceptions import (
    DatabaseError,
    ErrorKind,
    FileStorageError,
    NoAttachmentError,
    NotFoundError,
    RateLimitExceededError,
    ValidationError,
)


class TestSettings:
    def test_max_file_size_mb(self):
        s = Settings(_env_file=None, max_file_size=5_242_880)
        assert s.max_file_size_mb == 5

    def test_cors_wildcard(self):
        s = Settings(_env_file=None, cors_origins="*")
        assert s.cors_allow_any_origin is True

    def test_cors_allow_list(self):
        s = Settings(_env_file=None, cors_origins="http://a.test, http://b.test,")
        assert s.cors_origins_list == ["http://a.test", "http://b.test"]
        assert s.cors_allow_any_origin is False

    def test_log_level_normalized(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(pydantic.ValidationError):
            Settings(_env_file=None, log_level="chatty")

    def test_attachment_storage_normalized(self):
        assert Settings(_env_file=None, attachment_storage=" Inline ").attachment_storage == "inline"

    def test_unknown_attachment_storage(self):
        with pytest.raises(pydantic.ValidationError):
            Settings(_env_file=None, attachment_storage="s3")

    def test_sqlite_detection(self):
        assert Settings(_env_file=None, database_url="sqlite+aiosqlite://").is_sqlite
        assert not Settings(
            _env_file=None, database_url="postgresql+asyncpg://u:p@h/db"
        ).is_sqlite


class TestErrorKinds:
    @pytest.mark.parametrize(
        "error, status",
        [
            (ValidationError("bad"), 400),
            (NotFoundError("note", 1), 404),
            (NoAttachmentError(1), 404),
            (FileStorageError(), 500),
            (DatabaseError(), 500),
            (RateLimitExceededError(30), 429),
        ],
    )
    def test_status_codes(self, error, status):
        assert error.status_code == status

    def test_error_codes_are_stable(self):
        assert ErrorKind.NOT_FOUND.value == "not_found"
        assert ErrorKind.VALIDATION.value == "validation_error"

    def test_not_found_message(self):
        assert NotFoundError("note", 42).message == "Note not found with id: 42"

    def test_validation_field_in_context(self):
        assert ValidationError("bad", field="title").context == {"field": "title"}
