from __future__ import annotations

import json
import logging

from cableledger.core.logging import LogContext, build_log_event
from cableledger.core.logging_config import JsonFormatter


def test_build_log_event_merges_context_and_fields():
    payload = build_log_event("payment.recorded", LogContext(scope_id=3, actor_id=9, bill_id=4), receipt_id="RCP1")
    assert payload["event"] == "payment.recorded"
    assert payload["scope_id"] == 3
    assert payload["actor_id"] == 9
    assert payload["subscriber_id"] is None
    assert payload["receipt_id"] == "RCP1"


def test_json_formatter_includes_extra_fields():
    logger = logging.getLogger("cableledger.test")
    record = logger.makeRecord(
        "cableledger.test",
        logging.INFO,
        __file__,
        1,
        "billing.generate.finish",
        (),
        None,
        extra=build_log_event("billing.generate.finish", LogContext(scope_id=2), created=5),
    )
    line = json.loads(JsonFormatter().format(record))
    assert line["message"] == "billing.generate.finish"
    assert line["event"] == "billing.generate.finish"
    assert line["scope_id"] == 2
    assert line["created"] == 5
    assert line["level"] == "INFO"
