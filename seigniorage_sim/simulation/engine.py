#!/usr/bin/env python3
"""
Treasury Simulation Engine

Deploys the token set, oracle, staking pool and funds, hands every operator
right to a freshly initialized treasury and runs it epoch by epoch against a
stochastic market price and a population of bond traders.
"""

import logging
import math
from typing import Dict, List, Optional

from ..agents.base_agent import AgentAction, BaseAgent
from ..agents.bond_traders import BondBuyer, BondRedeemer
from ..core.epoch import PERIOD, ChainClock
from ..core.errors import OracleUnavailable, TreasuryError
from ..core.masonry import Masonry, VestingFund
from ..core.math import FixedPointMath
from ..core.oracle import SimulatedOracle
from ..core.tokens import BasisAsset
from ..core.treasury import EpochReport, Treasury
from ..engine.config import (
    OracleFault, SimulationConfig, TreasuryParameters, create_default_parameters,
)
from .price_path import PegPriceManager
from .state import SimulationState

logger = logging.getLogger(__name__)

DEPLOYER = "deployer"
MARKET = "market"
GENESIS_POOL = "genesis_pool"
DAO_FUND = "dao_fund"
DEV_FUND = "dev_fund"
BOND_TREASURY = "bond_treasury"


class TreasurySimulationEngine:
    """Epoch-by-epoch treasury simulation with direct function calls"""

    def __init__(self, config: SimulationConfig, parameters: Optional[TreasuryParameters] = None):
        self.config = config
        self.clock = ChainClock(config.genesis_time)
        self.start_time = config.genesis_time + config.start_delay

        self.price_manager = PegPriceManager(
            initial_price=config.initial_price,
            volatility=config.price_volatility,
            mean_reversion=config.mean_reversion,
            supply_elasticity=config.supply_elasticity,
            demand_drift=config.demand_drift,
            price_shocks=config.price_shocks,
            seed=config.random_seed
        )
        self.state = SimulationState(config.initial_price)
        self.agents = self._initialize_agents()
        self.current_epoch = 0

        self._deploy(parameters)

        self.metrics_history: List[Dict] = []
        self.agent_actions_history: List[Dict] = []
        self.epoch_reports: List[EpochReport] = []

    def _initialize_agents(self) -> Dict[str, BaseAgent]:
        """Initialize agents based on configuration"""
        agents = {}

        for i in range(self.config.num_bond_buyers):
            agent_id = f"bond_buyer_{i}"
            agents[agent_id] = BondBuyer(agent_id, buy_fraction=self.config.bond_buy_fraction)

        min_rate = FixedPointMath.to_wei(self.config.redeemer_min_rate)
        for i in range(self.config.num_bond_redeemers):
            agent_id = f"bond_redeemer_{i}"
            agents[agent_id] = BondRedeemer(agent_id, min_rate=min_rate)

        return agents

    def _deploy(self, parameters: Optional[TreasuryParameters]):
        """Mint genesis balances, initialize the treasury and hand over operator rights"""
        config = self.config
        to_wei = FixedPointMath.to_wei

        buyer_balance = to_wei(config.bond_buyer_balance)
        buyers = [agent_id for agent_id, agent in self.agents.items() if isinstance(agent, BondBuyer)]
        redeemers = [agent_id for agent_id, agent in self.agents.items() if isinstance(agent, BondRedeemer)]

        market_balance = to_wei(config.initial_supply) - buyer_balance * len(buyers)
        if market_balance < 0:
            raise ValueError("initial_supply is smaller than the combined bond buyer balances")

        main_balances = {agent_id: buyer_balance for agent_id in buyers}
        main_balances[MARKET] = market_balance
        if config.genesis_pool_supply > 0:
            main_balances[GENESIS_POOL] = to_wei(config.genesis_pool_supply)

        bond_balances = {agent_id: to_wei(config.redeemer_bond_balance) for agent_id in redeemers}

        self.main_token = BasisAsset("BASIS", DEPLOYER, main_balances)
        self.bond_token = BasisAsset("BOND", DEPLOYER, bond_balances)
        self.share_token = BasisAsset("SHARE", DEPLOYER)
        self.oracle = SimulatedOracle(self.main_token.symbol, to_wei(config.initial_price))
        self.masonry = Masonry(self.main_token, self.share_token, DEPLOYER, self.clock)

        self.bond_treasury = None
        if config.bond_treasury_allocation > 0:
            self.bond_treasury = VestingFund(
                BOND_TREASURY,
                to_wei(config.bond_treasury_allocation),
                self.start_time,
                config.bond_treasury_vesting_epochs * PERIOD,
                self.clock
            )

        data = (parameters or create_default_parameters()).model_dump()
        data["funds"].update(
            dao_fund=DAO_FUND,
            dao_fund_shared_percent=config.dao_fund_shared_percent,
            dev_fund=DEV_FUND,
            dev_fund_shared_percent=config.dev_fund_shared_percent
        )

        self.treasury = Treasury(self.clock)
        self.treasury.initialize(
            DEPLOYER, self.main_token, self.bond_token, self.share_token,
            self.oracle, self.masonry, self.start_time,
            TreasuryParameters.model_validate(data)
        )
        if self.bond_treasury is not None:
            self.treasury.set_bond_treasury(DEPLOYER, self.bond_treasury, config.bond_supply_expansion_percent)
        if config.genesis_pool_supply > 0:
            self.treasury.exclude_from_total_supply(DEPLOYER, GENESIS_POOL)

        for token in (self.main_token, self.bond_token, self.share_token):
            token.transfer_operator(DEPLOYER, self.treasury.address)
        self.masonry.set_operator(DEPLOYER, self.treasury.address)

        self.state.previous_supply = self.treasury.get_circulating_supply()
        logger.info(
            "deployed treasury: supply=%.0f start=%s epochs=%s",
            FixedPointMath.from_wei(self.state.previous_supply), self.start_time, config.epochs
        )

    def run_simulation(self, epochs: Optional[int] = None) -> Dict:
        """Run the simulation for the configured number of epochs"""
        epochs = epochs if epochs is not None else self.config.epochs

        for epoch in range(epochs):
            self.current_epoch = epoch
            self.state.reset_epoch_counters()

            self.clock.set(max(self.clock.now(), self.start_time + epoch * PERIOD))
            self._update_market_price()
            self._apply_oracle_faults()

            self._process_agent_actions()
            report = self._allocate_seigniorage()
            self._record_metrics(report)

            if epoch % 10 == 0:
                logger.debug("Simulation epoch %s/%s", epoch, epochs)

        return self._generate_results()

    def _update_market_price(self):
        supply = self.treasury.get_circulating_supply()
        previous = self.state.previous_supply
        supply_growth = math.log(supply / previous) if supply > 0 and previous > 0 else 0.0
        self.state.previous_supply = supply

        price = self.price_manager.update_price(self.current_epoch, supply_growth)
        self.state.current_price = price
        self.oracle.set_price(FixedPointMath.to_wei(round(price, 12)))

    def _apply_oracle_faults(self):
        fault = self.config.oracle_faults.get(self.current_epoch)
        self.oracle.fail_reads = fault == OracleFault.READ
        self.oracle.fail_updates = fault == OracleFault.UPDATE

    def _market_view(self) -> Dict[str, int]:
        """Quotes agents decide against; rebuilt before every agent"""
        treasury = self.treasury
        return {
            "price": treasury.get_token_price(),
            "price_ceiling": treasury.params.price_ceiling,
            "discount_rate": treasury.get_bond_discount_rate(),
            "premium_rate": treasury.get_bond_premium_rate(),
            "burnable_token_left": treasury.get_burnable_token_left(),
            "redeemable_bonds": treasury.get_redeemable_bonds()
        }

    def _process_agent_actions(self):
        """Process actions for all agents"""
        if self.oracle.fail_reads:
            return

        for agent_id, agent in self.agents.items():
            if not agent.active:
                continue

            agent.sync_balances(self.main_token, self.bond_token)
            action_type, params = agent.decide_action(self._market_view())
            if action_type == AgentAction.HOLD:
                continue

            try:
                result = self._execute_agent_action(agent, action_type, params)
            except TreasuryError as e:
                agent.state.rejected_actions += 1
                self.state.epoch_rejected_actions += 1
                logger.debug("%s %s rejected: %s", agent_id, action_type.value, e)
                continue

            self._record_agent_action(agent_id, action_type, params, result)
            agent.sync_balances(self.main_token, self.bond_token)

    def _execute_agent_action(self, agent: BaseAgent, action_type: AgentAction, params: dict) -> int:
        """Execute agent action through the treasury"""
        amount = params["amount"]

        if action_type == AgentAction.BUY_BONDS:
            bonds = self.treasury.buy_bonds(agent.agent_id, amount, params["expected_price"])
            agent.state.record_purchase(amount, bonds)
            self.state.record_purchase(amount, bonds)
            return bonds

        if action_type == AgentAction.REDEEM_BONDS:
            tokens = self.treasury.redeem_bonds(agent.agent_id, amount, params["expected_price"])
            agent.state.record_redemption(amount, tokens)
            self.state.record_redemption(amount, tokens)
            return tokens

        raise ValueError(f"unsupported agent action: {action_type}")

    def _allocate_seigniorage(self) -> Optional[EpochReport]:
        try:
            report = self.treasury.allocate_seigniorage()
        except OracleUnavailable as e:
            self.state.oracle_outages.append(self.current_epoch)
            logger.warning("epoch %s: seigniorage allocation skipped: %s", self.current_epoch, e)
            return None

        self.epoch_reports.append(report)
        self.state.total_minted += report.total_minted
        return report

    def _record_metrics(self, report: Optional[EpochReport]):
        """Record per-epoch treasury metrics in whole tokens"""
        from_wei = FixedPointMath.from_wei
        treasury = self.treasury
        ceiling = from_wei(treasury.params.price_ceiling)
        price = self.state.current_price

        if price > ceiling:
            self.state.epochs_above_ceiling += 1
        elif price < 1.0:
            self.state.epochs_below_peg += 1

        circulating = treasury.get_circulating_supply()
        bond_supply = self.bond_token.total_supply()
        distribution = report.distribution if report else None

        metrics = {
            "epoch": self.current_epoch,
            "treasury_epoch": treasury.epoch,
            "timestamp": self.clock.now(),
            "price": price,
            "twap_price": from_wei(self.oracle.twap(self.oracle.token, FixedPointMath.ONE))
            if not self.oracle.fail_reads else None,
            "price_ceiling": ceiling,
            "circulating_supply": from_wei(circulating),
            "total_supply": from_wei(self.main_token.total_supply()),
            "bond_supply": from_wei(bond_supply),
            "debt_ratio": bond_supply / circulating if circulating > 0 else 0.0,
            "seigniorage_saved": from_wei(treasury.seigniorage_saved),
            "treasury_balance": from_wei(self.main_token.balance_of(treasury.address)),
            "contraction_budget": from_wei(treasury.epoch_supply_contraction_left),
            "allocated": report is not None,
            "bootstrap": report.bootstrap if report else False,
            "oracle_refreshed": report.refresh.ok if report else False,
            "expansion_percent": report.expansion_percent if report else 0,
            "minted": from_wei(report.total_minted) if report else 0.0,
            "to_masonry": from_wei(distribution.staking) if distribution else 0.0,
            "to_dao_fund": from_wei(distribution.dao) if distribution else 0.0,
            "to_dev_fund": from_wei(distribution.dev) if distribution else 0.0,
            "to_reserve": from_wei(report.reserve_added) if report else 0.0,
            "to_bond_treasury": from_wei(report.bond_treasury_minted) if report else 0.0,
            "tokens_burned": from_wei(self.state.epoch_tokens_burned),
            "bonds_bought": from_wei(self.state.epoch_bonds_bought),
            "bonds_redeemed": from_wei(self.state.epoch_bonds_redeemed),
            "tokens_paid": from_wei(self.state.epoch_tokens_paid),
            "rejected_actions": self.state.epoch_rejected_actions
        }
        self.metrics_history.append(metrics)

    def _record_agent_action(self, agent_id: str, action_type: AgentAction, params: dict, result: int):
        """Record agent action for analysis"""
        self.agent_actions_history.append({
            "epoch": self.current_epoch,
            "agent_id": agent_id,
            "action_type": action_type.value,
            "amount": FixedPointMath.from_wei(params["amount"]),
            "expected_price": FixedPointMath.from_wei(params["expected_price"]),
            "result": FixedPointMath.from_wei(result),
            "timestamp": self.clock.now()
        })

    def _generate_results(self) -> Dict:
        """Generate final simulation results"""
        price = FixedPointMath.to_wei(round(self.state.current_price, 12))
        treasury_state = self.treasury.get_state()

        return {
            "metrics_history": self.metrics_history,
            "agent_actions_history": self.agent_actions_history,
            "treasury_events": [
                {
                    "name": event.name,
                    "amount": FixedPointMath.from_wei(event.amount),
                    "timestamp": event.timestamp,
                    "account": event.account
                }
                for event in self.treasury.events
            ],
            "oracle_outages": list(self.state.oracle_outages),
            "final_treasury_state": {
                key: value for key, value in treasury_state.items() if key != "parameters"
            },
            "treasury_parameters": treasury_state["parameters"],
            "agent_states": {
                agent_id: agent.get_portfolio_summary(price)
                for agent_id, agent in self.agents.items()
            },
            "price_statistics": self.price_manager.get_price_statistics(),
            "summary": self.state.get_state_summary(),
            "simulation_config": {
                "name": self.config.name,
                "epochs": self.current_epoch + 1,
                "treasury_epochs": self.treasury.epoch,
                "num_agents": len(self.agents),
                "num_actions": len(self.agent_actions_history),
                "random_seed": self.config.random_seed
            }
        }
