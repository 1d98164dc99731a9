"""
SaneRSS Scheduler Module
========================

Periodic feed polling.
"""

from .poller import FeedPoller, FeedPollResult, PollCycleResult

__all__ = ["FeedPoller", "FeedPollResult", "PollCycleResult"]
