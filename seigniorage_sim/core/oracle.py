#!/usr/bin/env python3
"""
Price Oracle Adapter

Wraps an external oracle. Reads either succeed or raise OracleUnavailable;
refreshing the TWAP accumulator never raises and instead returns an outcome
the caller has to look at.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Optional

from .errors import OracleUnavailable
from .math import ONE

logger = logging.getLogger(__name__)


class OracleFeedError(RuntimeError):
    """Raised by an oracle feed that cannot serve a request"""


class Oracle(ABC):
    """External price oracle collaborator"""

    @abstractmethod
    def consult(self, token: str, amount_in: int) -> int:
        """Price of amount_in units of token at the last update"""

    @abstractmethod
    def twap(self, token: str, amount_in: int) -> int:
        """Time-weighted average price of amount_in units of token"""

    @abstractmethod
    def update(self) -> None:
        """Advance the cumulative price accumulator"""


@dataclass(frozen=True)
class RefreshOutcome:
    """Result of an oracle refresh attempt"""
    ok: bool
    error: Optional[str] = None


class PriceOracleAdapter:
    """Translates oracle failures into the treasury's error taxonomy"""

    def __init__(self, oracle: Oracle, token: str):
        self.oracle = oracle
        self.token = token

    def spot_price(self) -> int:
        try:
            price = self.oracle.consult(self.token, ONE)
        except Exception as exc:
            raise OracleUnavailable(
                f"Treasury: failed to consult {self.token} price from the oracle"
            ) from exc
        return self._checked(price)

    def twap_price(self) -> int:
        try:
            price = self.oracle.twap(self.token, ONE)
        except Exception as exc:
            raise OracleUnavailable(
                f"Treasury: failed to consult {self.token} twap from the oracle"
            ) from exc
        return self._checked(price)

    def refresh(self) -> RefreshOutcome:
        try:
            self.oracle.update()
        except Exception as exc:
            return RefreshOutcome(ok=False, error=f"{type(exc).__name__}: {exc}")
        return RefreshOutcome(ok=True)

    def _checked(self, price: int) -> int:
        if price <= 0:
            raise OracleUnavailable(f"Treasury: oracle returned non-positive price {price}")
        return price


class SimulatedOracle(Oracle):
    """In-memory oracle with a rolling TWAP window and switchable failures"""

    def __init__(self, token: str, initial_price: int = ONE, window: int = 4):
        if window <= 0:
            raise ValueError(f"window must be positive: {window}")
        self.token = token
        self.price = initial_price
        self.observations = deque([initial_price], maxlen=window)
        self.update_count = 0

        # Failure switches used by scenarios and tests
        self.fail_reads = False
        self.fail_updates = False

    def set_price(self, price: int):
        """Set the current market price reported by consult"""
        if price <= 0:
            raise ValueError(f"price must be positive: {price}")
        self.price = price

    def consult(self, token: str, amount_in: int) -> int:
        self._check_read(token)
        return self.price * amount_in // ONE

    def twap(self, token: str, amount_in: int) -> int:
        self._check_read(token)
        average = sum(self.observations) // len(self.observations)
        return average * amount_in // ONE

    def update(self) -> None:
        if self.fail_updates:
            raise OracleFeedError("oracle update reverted")
        self.observations.append(self.price)
        self.update_count += 1
        logger.debug("oracle updated: %s observations, last %s", len(self.observations), self.price)

    def checkpoint(self):
        return tuple(self.observations), self.update_count

    def rollback(self, state):
        observations, self.update_count = state
        self.observations = deque(observations, maxlen=self.observations.maxlen)

    def _check_read(self, token: str):
        if token != self.token:
            raise OracleFeedError(f"oracle does not price {token}")
        if self.fail_reads:
            raise OracleFeedError("oracle feed offline")
