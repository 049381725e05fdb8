"""
Monitoring package for ZERO-BOT.

- monitor.py: BotMonitor (trade metrics + textual summary)
"""

from monitoring.monitor import BestTrade, BotMetrics, BotMonitor

__all__ = [
    "BestTrade",
    "BotMetrics",
    "BotMonitor",
]
