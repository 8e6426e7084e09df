"""Market state machine for a single BSI prediction market.

One ``Market`` per run owns the BSI history, the trade log and the
participants' positions. Trades are accepted only while the market is Active.
"""

from .state_machine import Market, MarketState, MarketStatistics

__all__ = [
    "Market",
    "MarketState",
    "MarketStatistics",
]
