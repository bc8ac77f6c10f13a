"""Tests for Solana address parsing and signature verification."""

from __future__ import annotations

import pytest
from solders.keypair import Keypair

from pixey.auth.solana import (
    InvalidWalletError,
    is_valid_wallet_address,
    parse_wallet_address,
    verify_wallet_signature,
)


@pytest.fixture
def keypair() -> Keypair:
    return Keypair()


class TestParseWalletAddress:
    def test_valid(self, keypair: Keypair) -> None:
        assert parse_wallet_address(str(keypair.pubkey())) == keypair.pubkey()

    @pytest.mark.parametrize(
        "address",
        ["", "not-base58-0OIl", "1" * 45, "abc", "bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4"],
    )
    def test_invalid(self, address: str) -> None:
        with pytest.raises(InvalidWalletError):
            parse_wallet_address(address)
        assert not is_valid_wallet_address(address)


class TestVerifyWalletSignature:
    def test_valid_signature(self, keypair: Keypair) -> None:
        message = "I am logging in to pixey\n\nNonce: abc"
        signature = keypair.sign_message(message.encode())
        assert verify_wallet_signature(str(keypair.pubkey()), message, str(signature))

    def test_unicode_message(self, keypair: Keypair) -> None:
        message = "Pixey 🎨 ünïcödé"
        signature = keypair.sign_message(message.encode("utf-8"))
        assert verify_wallet_signature(str(keypair.pubkey()), message, str(signature))

    def test_tampered_message(self, keypair: Keypair) -> None:
        signature = keypair.sign_message(b"original")
        assert not verify_wallet_signature(str(keypair.pubkey()), "tampered", str(signature))

    def test_other_signer(self, keypair: Keypair) -> None:
        signature = Keypair().sign_message(b"hello")
        assert not verify_wallet_signature(str(keypair.pubkey()), "hello", str(signature))

    def test_undecodable_signature(self, keypair: Keypair) -> None:
        with pytest.raises(InvalidWalletError, match="signature"):
            verify_wallet_signature(str(keypair.pubkey()), "hello", "0OIl")
