"""
Token ledger collaborator: balances, mints and transfers.

The engine only needs a handful of primitives from whatever holds the
tokens. `InMemoryTokenLedger` is a dict-backed implementation used by the
paper venue, the demo and the tests.
"""
from __future__ import annotations

import copy
from typing import Dict, Protocol, Tuple

from .core import U8_MAX, InsufficientFunds, OpenAmmError, to_u64


class TokenLedger(Protocol):
    def create_mint(self, mint: str, decimals: int) -> None: ...

    def transfer(self, mint: str, src: str, dst: str, amount: int) -> None: ...

    def mint_to(self, mint: str, dst: str, amount: int) -> None: ...

    def burn(self, mint: str, src: str, amount: int) -> None: ...

    def balance(self, mint: str, owner: str) -> int: ...

    def supply(self, mint: str) -> int: ...

    def decimals(self, mint: str) -> int: ...

    def checkpoint(self) -> object: ...

    def restore(self, state: object) -> None: ...


class InMemoryTokenLedger:
    """Balances keyed by (mint, owner); zero balances are dropped.

    Every mutation validates before it writes, so a failed call leaves the
    ledger untouched. `checkpoint()`/`restore()` snapshot the whole ledger
    for multi-step rollbacks.
    """

    def __init__(self) -> None:
        self._decimals: Dict[str, int] = {}
        self._supply: Dict[str, int] = {}
        self._balances: Dict[Tuple[str, str], int] = {}

    # --- mints ------------------------------------------------------------
    def create_mint(self, mint: str, decimals: int) -> None:
        if mint in self._decimals:
            raise OpenAmmError(f"mint {mint} already exists")
        if not (0 <= decimals <= U8_MAX):
            raise ValueError(f"decimals must fit u8: {decimals}")
        self._decimals[mint] = decimals
        self._supply[mint] = 0

    def has_mint(self, mint: str) -> bool:
        return mint in self._decimals

    def _require_mint(self, mint: str) -> None:
        if mint not in self._decimals:
            raise OpenAmmError(f"unknown mint {mint}")

    def decimals(self, mint: str) -> int:
        self._require_mint(mint)
        return self._decimals[mint]

    def supply(self, mint: str) -> int:
        self._require_mint(mint)
        return self._supply[mint]

    # --- balances ---------------------------------------------------------
    def balance(self, mint: str, owner: str) -> int:
        self._require_mint(mint)
        return self._balances.get((mint, owner), 0)

    def _set(self, mint: str, owner: str, amount: int) -> None:
        if amount == 0:
            self._balances.pop((mint, owner), None)
        else:
            self._balances[(mint, owner)] = amount

    def _debit_check(self, mint: str, owner: str, amount: int) -> int:
        if amount < 0:
            raise ValueError(f"amount must be non-negative: {amount}")
        have = self.balance(mint, owner)
        if have < amount:
            raise InsufficientFunds(f"{owner} holds {have} {mint}, needs {amount}")
        return have

    def transfer(self, mint: str, src: str, dst: str, amount: int) -> None:
        have = self._debit_check(mint, src, amount)
        if amount == 0 or src == dst:
            return
        new_dst = to_u64(self.balance(mint, dst) + amount, what=f"{dst} balance")
        self._set(mint, src, have - amount)
        self._set(mint, dst, new_dst)

    def mint_to(self, mint: str, dst: str, amount: int) -> None:
        self._require_mint(mint)
        if amount < 0:
            raise ValueError(f"amount must be non-negative: {amount}")
        new_supply = to_u64(self._supply[mint] + amount, what=f"{mint} supply")
        new_dst = to_u64(self.balance(mint, dst) + amount, what=f"{dst} balance")
        self._supply[mint] = new_supply
        self._set(mint, dst, new_dst)

    def burn(self, mint: str, src: str, amount: int) -> None:
        have = self._debit_check(mint, src, amount)
        self._supply[mint] -= amount
        self._set(mint, src, have - amount)

    # --- rollback ---------------------------------------------------------
    def checkpoint(self) -> tuple:
        return copy.deepcopy((self._decimals, self._supply, self._balances))

    def restore(self, state: tuple) -> None:
        self._decimals, self._supply, self._balances = copy.deepcopy(state)


__all__ = ["TokenLedger", "InMemoryTokenLedger"]
