from boardpilot.util.logging import get_logger, redact


def test_redact_secrets_and_images():
    text = (
        "Authorization: Bearer abc.def-123 key=sk-ant-api03-xyz other=sk-abc123 "
        "img=data:image/png;base64,iVBORw0KGgo= custom=hunter2"
    )
    redacted = redact(text, extra_secrets=["hunter2", ""])
    assert "abc.def-123" not in redacted
    assert "sk-ant-api03-xyz" not in redacted
    assert "sk-abc123" not in redacted
    assert "iVBORw0KGgo" not in redacted
    assert "hunter2" not in redacted
    assert "[IMAGE]" in redacted
    assert "Bearer [REDACTED]" in redacted


def test_get_logger_configures_once():
    logger = get_logger("boardpilot.test")
    again = get_logger("boardpilot.test")
    assert logger is again
    assert len(logger.handlers) == 1
