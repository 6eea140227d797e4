#!/usr/bin/env python3
"""
Basis Asset Ledger

Minimal in-memory token ledger for the main, bond and share tokens. Minting
and burning from other accounts are reserved to the token operator, which the
treasury must hold for every governed token.
"""

from typing import Dict, Optional, Tuple

from .errors import InsufficientBalance, InvalidAddress, InvalidAmount, NotOperator


class BasisAsset:
    """Operator-gated fungible token"""

    def __init__(self, symbol: str, owner: str, initial_balances: Optional[Dict[str, int]] = None):
        self.symbol = symbol
        self.owner = owner
        self.operator = owner
        self.balances: Dict[str, int] = {}
        self._total_supply = 0

        for account, amount in (initial_balances or {}).items():
            self._credit(account, amount)

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def mint(self, caller: str, recipient: str, amount: int) -> bool:
        self._require_operator(caller)
        if amount <= 0:
            raise InvalidAmount(f"{self.symbol}: mint amount must be positive")
        self._credit(recipient, amount)
        return True

    def burn(self, caller: str, amount: int):
        """Burn the caller's own tokens"""
        self._debit(caller, amount)

    def burn_from(self, caller: str, account: str, amount: int):
        self._require_operator(caller)
        self._debit(account, amount)

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        if not recipient:
            raise InvalidAddress(f"{self.symbol}: transfer to the zero address")
        self._debit(sender, amount)
        self._credit(recipient, amount)
        return True

    def transfer_operator(self, caller: str, new_operator: str):
        if caller != self.owner:
            raise NotOperator(f"{self.symbol}: caller is not the owner")
        if not new_operator:
            raise InvalidAddress(f"{self.symbol}: zero address given for new operator")
        self.operator = new_operator

    def checkpoint(self) -> Tuple[Dict[str, int], int]:
        return dict(self.balances), self._total_supply

    def rollback(self, state: Tuple[Dict[str, int], int]):
        balances, total_supply = state
        self.balances = dict(balances)
        self._total_supply = total_supply

    def _require_operator(self, caller: str):
        if caller != self.operator:
            raise NotOperator(f"{self.symbol}: caller is not the operator")

    def _credit(self, account: str, amount: int):
        if amount < 0:
            raise InvalidAmount(f"{self.symbol}: negative amount {amount}")
        self.balances[account] = self.balances.get(account, 0) + amount
        self._total_supply += amount

    def _debit(self, account: str, amount: int):
        if amount < 0:
            raise InvalidAmount(f"{self.symbol}: negative amount {amount}")
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientBalance(
                f"{self.symbol}: {account} holds {balance}, needs {amount}"
            )
        self.balances[account] = balance - amount
        self._total_supply -= amount

    def __repr__(self) -> str:
        return f"BasisAsset({self.symbol}, supply={self._total_supply}, operator={self.operator})"
