"""
SaneRSS Processing Module
=========================

Per-item filtering decisions.
"""

from .decision_gate import DecisionGate

__all__ = ["DecisionGate"]
