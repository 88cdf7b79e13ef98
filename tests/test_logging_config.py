import json
import logging

from app.logging_config import JSONFormatter, SenderLogger, get_logger
from app.services.state_machine import Flow


class CaptureHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record):
        self.records.append(record)


def _capture(name: str) -> tuple[logging.Logger, CaptureHandler]:
    logger = get_logger(name)
    handler = CaptureHandler()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    return logger, handler


class TestJSONFormatter:
    def test_formats_context(self):
        record = logging.LogRecord("agrihaul.test", logging.INFO, __file__, 1, "Load posted", None, None)
        record.context = {"job_id": "job-1", "weight_lbs": 50000}

        data = json.loads(JSONFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "agrihaul.test"
        assert data["message"] == "Load posted"
        assert data["context"] == {"job_id": "job-1", "weight_lbs": 50000}

    def test_non_json_values_are_stringified(self):
        record = logging.LogRecord("agrihaul.test", logging.INFO, __file__, 1, "msg", None, None)
        record.context = {"flow": Flow.MAIN, "ids": {"a"}}

        data = json.loads(JSONFormatter().format(record))

        assert data["context"]["ids"] == "{'a'}"

    def test_no_context_key_when_empty(self):
        record = logging.LogRecord("agrihaul.test", logging.INFO, __file__, 1, "msg", None, None)

        assert "context" not in json.loads(JSONFormatter().format(record))


class TestSenderLogger:
    def test_namespace(self):
        assert get_logger("conversation").name == "agrihaul.conversation"

    def test_stamps_sender_and_flow(self):
        logger, handler = _capture("sender_logger_turn")

        SenderLogger(logger, "whatsapp:+1", flow=Flow.RATE_ENTER_SCORE).info("Input rejected")

        assert handler.records[0].context == {"sender_id": "whatsapp:+1", "flow": "rate_enter_score"}

    def test_call_context_overrides_turn_fields(self):
        logger, handler = _capture("sender_logger_override")

        log = SenderLogger(logger, "whatsapp:+1", flow=Flow.MAIN)
        log.info("Carrier linked", context={"flow": "find_loads_link_carrier", "carrier_id": "carrier-1"})

        assert handler.records[0].context == {
            "sender_id": "whatsapp:+1",
            "flow": "find_loads_link_carrier",
            "carrier_id": "carrier-1",
        }

    def test_unknown_flow_value_is_logged_as_text(self):
        logger, handler = _capture("sender_logger_unknown")

        SenderLogger(logger, "whatsapp:+1", flow="bogus_state").warning("Unknown session flow")

        assert handler.records[0].context["flow"] == "bogus_state"
