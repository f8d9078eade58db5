import pytest

from core.infrastructure.services import DataSanitizer


@pytest.fixture
def sanitizer():
    return DataSanitizer()


def test_sensitive_fields_are_masked(sanitizer):
    sanitized = sanitizer.sanitize_for_logging(
        {
            "user_id": 3,
            "access_token": "abc.def.ghi",
            "nested": {"Authorization": "Bearer xyz", "site": "Tower A"},
        }
    )

    assert sanitized == {
        "user_id": 3,
        "access_token": DataSanitizer.MASK,
        "nested": {"Authorization": DataSanitizer.MASK, "site": "Tower A"},
    }


def test_emails_are_partially_masked(sanitizer):
    assert (
        sanitizer.sanitize_for_logging("owner is jane@example.com")
        == "owner is j**e@example.com"
    )
    assert sanitizer.sanitize_for_logging("ab@example.com") == "**@example.com"


def test_tokens_in_free_text_are_redacted(sanitizer):
    text = sanitizer.sanitize_exception_for_logging(
        ValueError("GET /ws/notifications?token=eyJhbGci.payload&x=1 Bearer eyJabc")
    )

    assert "eyJ" not in text
    assert f"token={DataSanitizer.MASK}&x=1" in text
    assert f"Bearer {DataSanitizer.MASK}" in text


def test_sql_parameters_are_hidden(sanitizer):
    text = sanitizer.sanitize_exception_for_logging(
        "(sqlite3.OperationalError) locked [parameters: (1, 'secret')]"
    )

    assert text.endswith("[parameters: ***SANITIZED***]")


def test_long_lists_are_truncated(sanitizer):
    assert sanitizer.sanitize_for_logging(list(range(25))) == list(range(10))
