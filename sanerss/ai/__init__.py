"""
SaneRSS AI Processing Module
============================

AI decision providers that classify feed items against accept/reject topics,
using OpenAI-compatible and Groq APIs.
"""

from .prompts import FilterPromptBuilder
from .providers import DecisionProvider, FilterVerdict, create_provider

__all__ = ["DecisionProvider", "FilterPromptBuilder", "FilterVerdict", "create_provider"]
