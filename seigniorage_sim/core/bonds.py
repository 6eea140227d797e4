#!/usr/bin/env python3
"""
Bond Pricing

Discount rate for buying bonds below peg and premium rate for redeeming them
above the price ceiling. A rate of 0 means the operation is not currently
permitted; it is never a valid exchange rate.
"""

from .math import FixedPointMath, ONE, TOKEN_PRICE_ONE


class BondPricer:
    """Pure bond rate functions over a BondRateConfig"""

    @staticmethod
    def discount_rate(price: int, config, peg: int = TOKEN_PRICE_ONE) -> int:
        """Bonds received per unit of main token burned, eligible at or below peg"""
        if price <= 0 or price > peg:
            return 0

        if config.discount_percent == 0:
            return peg

        # Bonds needed to fully cover burning one unit of main token
        bond_amount = peg * ONE // price
        discount_amount = FixedPointMath.apply_bps(bond_amount - peg, config.discount_percent)
        rate = peg + discount_amount

        if config.max_discount_rate > 0 and rate > config.max_discount_rate:
            rate = config.max_discount_rate
        return rate

    @staticmethod
    def premium_rate(price: int, ceiling: int, config, peg: int = TOKEN_PRICE_ONE) -> int:
        """Main token paid per bond redeemed, eligible above the ceiling"""
        if price <= ceiling:
            return 0

        premium_threshold_price = peg * config.premium_threshold // 100
        if price < premium_threshold_price:
            return peg

        premium_amount = FixedPointMath.apply_bps(price - peg, config.premium_percent)
        rate = peg + premium_amount

        if config.max_premium_rate > 0 and rate > config.max_premium_rate:
            rate = config.max_premium_rate
        return rate

    @staticmethod
    def bonds_for_tokens(token_amount: int, rate: int) -> int:
        return FixedPointMath.mul_price(token_amount, rate)

    @staticmethod
    def tokens_for_bonds(bond_amount: int, rate: int) -> int:
        return FixedPointMath.mul_price(bond_amount, rate)
