"""
SPL token burn instruction decoding.

Pure functions over raw instruction bytes so the byte-offset parsing can be
tested without a cluster. Layout of a Burn instruction's data:

    [0]     opcode (u8)
    [1..9]  amount (u64, little-endian)

Account order: token account, mint, authority.
"""

from __future__ import annotations

import base64
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PeZ5x8sxVyNUdj"
TOKEN_PROGRAMS = frozenset({TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID})

BURN_OPCODES = frozenset({8, 9, 15})

_AMOUNT_OFFSET = 1
_AMOUNT_SIZE = 8


class InstructionDecodeError(ValueError):
    """Instruction data is not a burn payload."""


@dataclass(frozen=True)
class RawInstruction:
    """An instruction with its account indices already resolved to addresses."""

    program_id: str
    accounts: tuple[str, ...]
    data: bytes


@dataclass(frozen=True)
class BurnInstruction:
    amount: int
    token_account: str
    mint: str
    authority: str


def decode_burn_amount(data: bytes) -> int:
    """
    Decode the raw burned amount from instruction data.

    Raises:
        InstructionDecodeError: Empty or short payload, or a non-burn opcode.
    """
    if not data:
        msg = "Empty instruction data"
        raise InstructionDecodeError(msg)
    if data[0] not in BURN_OPCODES:
        msg = f"Opcode {data[0]} is not a burn"
        raise InstructionDecodeError(msg)
    end = _AMOUNT_OFFSET + _AMOUNT_SIZE
    if len(data) < end:
        msg = f"Burn payload too short: {len(data)} bytes"
        raise InstructionDecodeError(msg)
    return int.from_bytes(data[_AMOUNT_OFFSET:end], "little")


def find_burn_instruction(instructions: Iterable[RawInstruction]) -> BurnInstruction | None:
    """First decodable burn targeting an SPL token program, or None."""
    for ix in instructions:
        if ix.program_id not in TOKEN_PROGRAMS:
            continue
        if len(ix.accounts) < 3:
            continue
        try:
            amount = decode_burn_amount(ix.data)
        except InstructionDecodeError:
            continue
        return BurnInstruction(
            amount=amount,
            token_account=ix.accounts[0],
            mint=ix.accounts[1],
            authority=ix.accounts[2],
        )
    return None


def _loaded_keys(loaded_addresses: dict[str, Any] | None) -> list[Pubkey]:
    if not loaded_addresses:
        return []
    keys = [*loaded_addresses.get("writable", []), *loaded_addresses.get("readonly", [])]
    return [Pubkey.from_string(k) for k in keys]


def instructions_from_transaction(
    raw_tx: bytes,
    loaded_addresses: dict[str, Any] | None = None,
) -> list[RawInstruction]:
    """
    Parse a serialized legacy or v0 transaction into resolved instructions.

    ``loaded_addresses`` is ``meta.loadedAddresses`` from ``getTransaction``;
    address-table lookups of a v0 message index past the static keys into it.

    Raises:
        InstructionDecodeError: Bytes that do not parse as a transaction, or an
            account index outside the key list.
    """
    try:
        tx = VersionedTransaction.from_bytes(raw_tx)
    except (ValueError, TypeError) as e:
        msg = "Malformed transaction bytes"
        raise InstructionDecodeError(msg) from e

    message = tx.message
    resolved: list[RawInstruction] = []
    try:
        keys: Sequence[Pubkey] = [*message.account_keys, *_loaded_keys(loaded_addresses)]
        for ix in message.instructions:
            resolved.append(
                RawInstruction(
                    program_id=str(keys[ix.program_id_index]),
                    accounts=tuple(str(keys[i]) for i in bytes(ix.accounts)),
                    data=bytes(ix.data),
                )
            )
    except (IndexError, ValueError) as e:
        msg = "Instruction references an unknown account"
        raise InstructionDecodeError(msg) from e
    return resolved


def decode_transaction_payload(tx_field: Any) -> bytes:  # noqa: ANN401
    """Raw bytes of the ``transaction`` field of a base64 ``getTransaction`` result."""
    if isinstance(tx_field, list) and tx_field and isinstance(tx_field[0], str):
        encoded = tx_field[0]
    elif isinstance(tx_field, str):
        encoded = tx_field
    else:
        msg = "Unsupported transaction encoding"
        raise InstructionDecodeError(msg)
    try:
        return base64.b64decode(encoded, validate=True)
    except ValueError as e:
        msg = "Transaction payload is not base64"
        raise InstructionDecodeError(msg) from e
