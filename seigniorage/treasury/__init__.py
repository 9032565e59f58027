"""
Treasury package: the state record and the entry points that mutate it.
"""

from .state import TreasuryState
from .treasury import FailurePolicy, Treasury

__all__ = ["Treasury", "TreasuryState", "FailurePolicy"]
