"""
Solana wallet address parsing and Ed25519 message-signature verification.

Wallet addresses are base58-encoded 32-byte public keys; signatures are
base58-encoded 64-byte Ed25519 signatures over the UTF-8 message bytes.
Uses solders for decoding and verification.
"""

from __future__ import annotations

from solders.pubkey import Pubkey
from solders.signature import Signature


class InvalidWalletError(ValueError):
    """The wallet address or signature could not be decoded."""


def parse_wallet_address(wallet_address: str) -> Pubkey:
    """
    Decode a base58 wallet address.

    Raises:
        InvalidWalletError: If the value is not a 32-byte base58 public key.
    """
    if not wallet_address or len(wallet_address) > 44:
        msg = "Invalid wallet address"
        raise InvalidWalletError(msg)
    try:
        return Pubkey.from_string(wallet_address)
    except (ValueError, TypeError) as e:
        msg = "Invalid wallet address"
        raise InvalidWalletError(msg) from e


def is_valid_wallet_address(wallet_address: str) -> bool:
    """True when ``wallet_address`` decodes to a public key."""
    try:
        parse_wallet_address(wallet_address)
    except InvalidWalletError:
        return False
    return True


def verify_wallet_signature(wallet_address: str, message: str, signature_b58: str) -> bool:
    """
    Verify a wallet's Ed25519 signature over ``message``.

    Args:
        wallet_address: Base58 public key of the signer.
        message: The exact text that was signed.
        signature_b58: Base58-encoded signature.

    Returns:
        True if the signature is valid for the wallet.

    Raises:
        InvalidWalletError: If the address or signature cannot be decoded.
    """
    pubkey = parse_wallet_address(wallet_address)
    try:
        signature = Signature.from_string(signature_b58)
    except (ValueError, TypeError) as e:
        msg = "Invalid signature encoding"
        raise InvalidWalletError(msg) from e
    return signature.verify(pubkey, message.encode("utf-8"))
