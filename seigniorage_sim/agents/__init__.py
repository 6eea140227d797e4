"""Bond market agents"""

from .base_agent import BaseAgent, AgentAction, AgentState
from .bond_traders import BondBuyer, BondRedeemer

__all__ = ["BaseAgent", "AgentAction", "AgentState", "BondBuyer", "BondRedeemer"]
