import logging

from visa_portal.services.sms_service import LoggingSmsSender, mask_code


def test_mask_code_keeps_last_two_digits():
    assert mask_code("482193") == "****93"
    assert mask_code("7") == "7"


def test_logging_sender_never_logs_the_code(caplog):
    with caplog.at_level(logging.DEBUG, logger="visa_portal.services.sms_service"):
        message_id = LoggingSmsSender().send_otp("+911234567890", "482193")

    assert message_id.startswith("sms-logged-")
    assert "+911234567890" in caplog.text
    assert "482193" not in caplog.text
    assert "****93" in caplog.text
