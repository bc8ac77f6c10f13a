"""Tests for nonce challenge issuing and consumption."""

from unittest.mock import AsyncMock

import pytest

from pixey.auth.challenge import build_challenge_message, consume_challenge, issue_challenge
from pixey.config import get_settings
from pixey.errors import InvalidInput

WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"


@pytest.fixture
def redis() -> AsyncMock:
    return AsyncMock()


class TestBuildChallengeMessage:
    def test_format(self):
        message = build_challenge_message(WALLET, "abc123", "2026-01-01T00:00:00Z", domain="pixey.test")
        assert message == (
            "I am logging in to pixey.test\n\n"
            f"Wallet: {WALLET}\n"
            "Nonce: abc123\n"
            "Issued At: 2026-01-01T00:00:00Z"
        )

    def test_defaults_to_configured_domain(self):
        message = build_challenge_message(WALLET, "n", "t")
        assert message.startswith(f"I am logging in to {get_settings().auth_domain}")


class TestIssueChallenge:
    async def test_stores_nonce_with_ttl(self, redis: AsyncMock):
        challenge = await issue_challenge(redis, WALLET)

        redis.set.assert_awaited_once()
        args, kwargs = redis.set.call_args
        assert args[0] == f"auth:nonce:{WALLET}"
        assert args[1] == f"{challenge.nonce}:{challenge.issued_at}"
        assert kwargs["ex"] == get_settings().auth_challenge_expire_seconds
        assert challenge.expires_in == get_settings().auth_challenge_expire_seconds
        assert f"Nonce: {challenge.nonce}" in challenge.message
        assert WALLET in challenge.message

    async def test_nonces_are_unique(self, redis: AsyncMock):
        first = await issue_challenge(redis, WALLET)
        second = await issue_challenge(redis, WALLET)
        assert first.nonce != second.nonce


class TestConsumeChallenge:
    async def test_returns_rebuilt_message(self, redis: AsyncMock):
        redis.getdel.return_value = b"abc123:2026-01-01T00:00:00Z"
        message = await consume_challenge(redis, WALLET, "abc123")
        assert message == build_challenge_message(WALLET, "abc123", "2026-01-01T00:00:00Z")
        redis.getdel.assert_awaited_once_with(f"auth:nonce:{WALLET}")

    async def test_missing(self, redis: AsyncMock):
        redis.getdel.return_value = None
        with pytest.raises(InvalidInput, match="expired or not found"):
            await consume_challenge(redis, WALLET, "abc123")

    async def test_wrong_nonce(self, redis: AsyncMock):
        redis.getdel.return_value = "abc123:2026-01-01T00:00:00Z"
        with pytest.raises(InvalidInput, match="Invalid nonce"):
            await consume_challenge(redis, WALLET, "zzz999")

    async def test_non_ascii_nonce_rejected(self, redis: AsyncMock):
        redis.getdel.return_value = "abc123:2026-01-01T00:00:00Z"
        with pytest.raises(InvalidInput):
            await consume_challenge(redis, WALLET, "ñonce")
