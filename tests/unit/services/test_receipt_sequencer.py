from __future__ import annotations

from datetime import datetime

from sqlalchemy import select

from cableledger.models import SequenceCounter
from cableledger.services.receipt_sequencer import (
    ReceiptSequencer,
    format_receipt_id,
    receipt_counter_key,
    subscriber_counter_key,
)


def test_format_receipt_id_uses_two_digit_year_and_month():
    assert format_receipt_id("RCP", datetime(2024, 1, 15), 7) == "RCP2401000007"
    assert format_receipt_id("RCP", datetime(2031, 12, 1), 123456) == "RCP3112123456"


def test_receipt_counter_is_shared_within_a_month(session):
    sequencer = ReceiptSequencer(db=session, receipt_prefix="RCP")
    at = datetime(2024, 3, 2)

    first = sequencer.next_receipt_id(at=at)
    second = sequencer.next_receipt_id(at=at)
    session.commit()

    assert (first, second) == ("RCP2403000001", "RCP2403000002")
    assert session.get(SequenceCounter, receipt_counter_key("RCP2403")).value == 2


def test_each_month_starts_a_fresh_sequence(session):
    sequencer = ReceiptSequencer(db=session, receipt_prefix="RCP")
    sequencer.next_receipt_id(at=datetime(2024, 1, 30))
    january = sequencer.next_receipt_id(at=datetime(2024, 1, 31))
    february = sequencer.next_receipt_id(at=datetime(2024, 2, 1))

    assert january == "RCP2401000002"
    assert february == "RCP2402000001"


def test_rollback_returns_drawn_value(session):
    sequencer = ReceiptSequencer(db=session)
    sequencer.next_value("receipt:RCP2409")
    session.rollback()

    assert session.execute(select(SequenceCounter).where(SequenceCounter.key == "receipt:RCP2409")).first() is None
    assert sequencer.next_value("receipt:RCP2409") == 1


def test_subscriber_codes_are_per_scope(session):
    sequencer = ReceiptSequencer(db=session, subscriber_code_prefix="CUST")
    assert sequencer.next_subscriber_code(10) == "CUST000001"
    assert sequencer.next_subscriber_code(10) == "CUST000002"
    assert sequencer.next_subscriber_code(11) == "CUST000001"
    assert subscriber_counter_key(10) != receipt_counter_key("CUST")
