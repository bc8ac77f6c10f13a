"""Check a fetched ``getTransaction`` result against a burn claim."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pixey.burns.instruction import (
    InstructionDecodeError,
    decode_transaction_payload,
    find_burn_instruction,
    instructions_from_transaction,
)
from pixey.errors import BurnVerificationError


@dataclass(frozen=True)
class BurnProof:
    raw_amount: int
    mint: str
    authority: str
    token_account: str


def verify_burn(
    tx_result: dict[str, Any] | None,
    wallet_address: str,
    mint: str,
    min_raw_amount: int,
) -> BurnProof:
    """
    Validate that ``tx_result`` is a successful burn of ``mint`` by ``wallet_address``.

    Raises:
        BurnVerificationError: Transaction missing or failed on-chain, no burn
            instruction, wrong authority or mint, or an amount below the minimum.
    """
    if not tx_result:
        raise BurnVerificationError("Transaction not found or not confirmed")

    meta = tx_result.get("meta")
    if not isinstance(meta, dict):
        raise BurnVerificationError("Transaction status unavailable")
    if meta.get("err") is not None:
        raise BurnVerificationError("Transaction failed on-chain")

    try:
        raw_tx = decode_transaction_payload(tx_result.get("transaction"))
        instructions = instructions_from_transaction(raw_tx, meta.get("loadedAddresses"))
    except InstructionDecodeError as e:
        raise BurnVerificationError(f"Could not decode transaction: {e}") from e

    burn = find_burn_instruction(instructions)
    if burn is None:
        raise BurnVerificationError("No burn instruction found in transaction")
    if burn.authority != wallet_address:
        raise BurnVerificationError("Burn authority does not match wallet")
    if burn.mint != mint:
        raise BurnVerificationError("Burned token is not the game token")
    if burn.amount < min_raw_amount:
        raise BurnVerificationError(f"Burn amount below minimum of {min_raw_amount}")

    return BurnProof(
        raw_amount=burn.amount,
        mint=burn.mint,
        authority=burn.authority,
        token_account=burn.token_account,
    )
