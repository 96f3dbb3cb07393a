import threading

from accounts.services.otp_store import OtpStore


def test_issued_code_is_six_digits(otp_store):
    for _ in range(50):
        code = otp_store.issue("a@example.com")
        assert len(code) == 6
        assert 100000 <= int(code) <= 999999


def test_issue_then_verify_round_trip(otp_store):
    code = otp_store.issue("a@example.com")

    assert otp_store.verify("a@example.com", code)
    # checking does not consume
    assert otp_store.verify("a@example.com", code)


def test_verify_false_after_consume(otp_store):
    code = otp_store.issue("a@example.com")
    otp_store.consume("a@example.com")

    assert otp_store.verify("a@example.com", code) is False


def test_verify_false_after_expiry(otp_store, clock):
    code = otp_store.issue("a@example.com")

    clock.advance(300)
    assert otp_store.verify("a@example.com", code)

    clock.advance(1)
    assert otp_store.verify("a@example.com", code) is False
    assert len(otp_store) == 0


def test_reissue_overwrites_previous_code(otp_store):
    first = otp_store.issue("a@example.com")
    second = otp_store.issue("a@example.com")
    while second == first:
        second = otp_store.issue("a@example.com")

    assert otp_store.verify("a@example.com", first) is False
    assert otp_store.verify("a@example.com", second)


def test_codes_are_scoped_per_email(otp_store):
    code = otp_store.issue("a@example.com")

    assert otp_store.verify("b@example.com", code) is False
    assert otp_store.verify("a@example.com", None) is False


def test_concurrent_issue_and_consume_keep_store_consistent():
    store = OtpStore(ttl_seconds=300)
    emails = [f"user{i}@example.com" for i in range(20)]

    def worker(email):
        for _ in range(100):
            code = store.issue(email)
            store.verify(email, code)
        store.consume(email)

    threads = [threading.Thread(target=worker, args=(email,)) for email in emails]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store) == 0
