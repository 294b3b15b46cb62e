"""Confirmation policies.

Importing this package registers the built-in policies, so
``create_policy(PolicyConfig(name=...))`` can resolve any of them.
"""

from core.strategy.protocol import BasePolicy, SignalPolicy
from core.strategy.registry import create_policy, register_policy

# Import built-in policies to trigger registration
from core.strategy.crossover import CrossoverBreakoutPolicy, CrossoverPolicy
from core.strategy.arm_confirm import ArmConfirmPolicy

__all__ = [
    "SignalPolicy",
    "BasePolicy",
    "register_policy",
    "create_policy",
    "CrossoverPolicy",
    "CrossoverBreakoutPolicy",
    "ArmConfirmPolicy",
]
