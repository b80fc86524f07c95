from __future__ import annotations

from datetime import timedelta

from app.core.otp_store import OtpStore
from app.core.security import codes_match


def test_issue_replaces_previous_code(otp_store):
    otp_store.issue((1, 2), "111111")
    otp_store.issue((1, 2), "222222", remarks="second")

    record = otp_store.get((1, 2))
    assert record.code == "222222"
    assert record.remarks == "second"
    assert len(otp_store) == 1


def test_expiry_is_lazy(otp_store, clock):
    otp_store.issue((1, 2), "111111")
    clock.advance(minutes=10)
    record = otp_store.get((1, 2))
    assert not otp_store.is_expired(record)

    clock.advance(seconds=1)
    assert otp_store.is_expired(record)
    # Nothing is removed until a caller acts on the expiry.
    assert (1, 2) in otp_store


def test_consume_only_on_match(otp_store):
    otp_store.issue((1, 2), "123456")

    assert otp_store.consume((1, 2), "654321", codes_match) is None
    assert (1, 2) in otp_store

    consumed = otp_store.consume((1, 2), "123456", codes_match)
    assert consumed is not None and consumed.code == "123456"
    assert (1, 2) not in otp_store
    assert otp_store.consume((1, 2), "123456", codes_match) is None


def test_purge_expired(clock):
    store = OtpStore(ttl=timedelta(minutes=5), clock=clock)
    store.issue((1, 1), "111111")
    clock.advance(minutes=3)
    store.issue((2, 2), "222222")
    clock.advance(minutes=3)

    assert store.purge_expired() == 1
    assert (1, 1) not in store
    assert (2, 2) in store


def test_keys_are_independent(otp_store):
    otp_store.issue((7, 9), "111111")
    otp_store.issue((7, 12), "222222")
    assert otp_store.discard((7, 9)).code == "111111"
    assert otp_store.get((7, 12)).code == "222222"


def test_record_dropped_after_too_many_misses(clock):
    store = OtpStore(ttl=timedelta(minutes=10), clock=clock, max_attempts=3)
    store.issue((7, 9), "123456")

    assert store.consume((7, 9), "000000", codes_match) is None
    assert store.consume((7, 9), "000001", codes_match) is None
    assert store.get((7, 9)).failed_attempts == 2

    assert store.consume((7, 9), "000002", codes_match) is None
    assert (7, 9) not in store
    assert store.consume((7, 9), "123456", codes_match) is None


def test_reissue_resets_attempts(clock):
    store = OtpStore(ttl=timedelta(minutes=10), clock=clock, max_attempts=2)
    store.issue((7, 9), "123456")
    store.consume((7, 9), "000000", codes_match)

    store.issue((7, 9), "654321")
    assert store.get((7, 9)).failed_attempts == 0
    assert store.consume((7, 9), "654321", codes_match).code == "654321"
