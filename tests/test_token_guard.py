import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from app.core.errors import BadSignature, MalformedToken, TooFast, UnknownOrReplayedToken
from app.core.token_guard import TokenGuard


def test_issued_token_has_three_fields(token_guard):
    token = token_guard.issue()
    session_id, issued_at, signature = token.split(":")

    assert len(session_id) == 32
    assert int(issued_at) == token_guard._clock()
    assert len(signature) == 64
    assert token_guard.outstanding_count() == 1


def test_session_ids_are_unique(token_guard):
    tokens = {token_guard.issue().split(":")[0] for _ in range(200)}
    assert len(tokens) == 200


def test_immediate_validation_is_too_fast(token_guard, clock):
    token = token_guard.issue()
    clock.advance(4999)

    with pytest.raises(TooFast):
        token_guard.validate(token)

    # 未核销，仍可在满 5 秒后使用
    assert token_guard.outstanding_count() == 1


def test_token_succeeds_exactly_once_after_floor(token_guard, clock):
    token = token_guard.issue()
    clock.advance(5000)

    token_guard.validate(token)
    assert token_guard.outstanding_count() == 0

    with pytest.raises(UnknownOrReplayedToken):
        token_guard.validate(token)


def test_too_fast_then_success(token_guard, clock):
    token = token_guard.issue()
    with pytest.raises(TooFast):
        token_guard.validate(token)

    clock.advance(6000)
    token_guard.validate(token)


@pytest.mark.parametrize("elapsed", [0, 5000, 10 * 60 * 1000])
def test_tampered_signature_is_rejected_regardless_of_age(token_guard, clock, elapsed):
    token = token_guard.issue()
    clock.advance(elapsed)
    session_id, issued_at, signature = token.split(":")

    for i in range(len(signature)):
        flipped = "0" if signature[i] != "0" else "1"
        tampered = f"{session_id}:{issued_at}:{signature[:i]}{flipped}{signature[i + 1:]}"
        with pytest.raises(BadSignature):
            token_guard.validate(tampered)

    # 原令牌不受篡改尝试影响
    assert token_guard.outstanding_count() == 1


def test_forged_timestamp_is_rejected(token_guard, clock):
    token = token_guard.issue()
    session_id, issued_at, signature = token.split(":")
    backdated = f"{session_id}:{int(issued_at) - 60_000}:{signature}"

    with pytest.raises(BadSignature):
        token_guard.validate(backdated)


def test_token_from_another_process_secret_is_rejected(clock):
    issuer = TokenGuard(clock=clock)
    verifier = TokenGuard(clock=clock)
    token = issuer.issue()
    clock.advance(5000)

    with pytest.raises(BadSignature):
        verifier.validate(token)


@pytest.mark.parametrize("token", ["", "abc", "a:b", "a:b:c:d", None, 12345])
def test_malformed_tokens(token_guard, token):
    with pytest.raises(MalformedToken):
        token_guard.validate(token)


def test_never_issued_but_correctly_signed_is_unknown(clock):
    guard = TokenGuard(secret=b"k" * 32, clock=clock)
    session_id = "f" * 32
    issued_at = str(clock())
    token = f"{session_id}:{issued_at}:{guard._sign(session_id, issued_at)}"
    clock.advance(5000)

    with pytest.raises(UnknownOrReplayedToken):
        guard.validate(token)


def test_concurrent_validation_of_same_token_succeeds_once(token_guard, clock):
    token = token_guard.issue()
    clock.advance(5000)
    barrier = threading.Barrier(16)

    def attempt():
        barrier.wait()
        try:
            token_guard.validate(token)
            return "ok"
        except UnknownOrReplayedToken:
            return "replayed"

    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(lambda _: attempt(), range(16)))

    assert results.count("ok") == 1
    assert results.count("replayed") == 15


def test_sweep_expired_drops_only_old_tokens(token_guard, clock):
    old = token_guard.issue()
    clock.advance(60_000)
    fresh = token_guard.issue()

    removed = token_guard.sweep_expired(30_000)

    assert removed == 1
    assert token_guard.outstanding_count() == 1
    clock.advance(5000)
    token_guard.validate(fresh)
    with pytest.raises(UnknownOrReplayedToken):
        token_guard.validate(old)
