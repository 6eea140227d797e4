#!/usr/bin/env python3
"""
Fixed-Point Treasury Math

Ledger quantities are integers scaled by 1e18 and percentages are basis points.
All divisions truncate, matching on-chain integer arithmetic.
"""

from decimal import Decimal
from typing import Union


class FixedPointMath:
    """Pure fixed-point helpers shared by the pricing and allocation modules"""

    ONE = 10 ** 18
    BASIS_POINTS = 10_000
    # One basis point expressed on the 1e18 price scale
    BPS_TO_PRICE_SCALE = 10 ** 14

    @staticmethod
    def to_wei(amount: Union[int, float, str, Decimal]) -> int:
        """Convert a whole-token amount to 18-decimal fixed point"""
        return int(Decimal(str(amount)) * FixedPointMath.ONE)

    @staticmethod
    def from_wei(amount: int) -> float:
        """Convert an 18-decimal fixed point amount to a float for reporting"""
        return amount / FixedPointMath.ONE

    @staticmethod
    def apply_bps(amount: int, percent: int) -> int:
        """amount * percent / 10000, truncated"""
        return amount * percent // FixedPointMath.BASIS_POINTS

    @staticmethod
    def mul_price(amount: int, price: int) -> int:
        """Multiply a token amount by a 1e18-scaled price"""
        return amount * price // FixedPointMath.ONE

    @staticmethod
    def div_price(amount: int, price: int) -> int:
        """Divide a token amount by a 1e18-scaled price"""
        if price <= 0:
            raise ValueError(f"price must be positive: {price}")
        return amount * FixedPointMath.ONE // price


ONE = FixedPointMath.ONE
BASIS_POINTS = FixedPointMath.BASIS_POINTS
TOKEN_PRICE_ONE = ONE
