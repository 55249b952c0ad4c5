"""
Depth Pricer - streaming order book aggregator for Binance depth feeds.

Architecture:
- datafeed/: WebSocket connection, message decoding and local order books
- engine/: Depth-weighted pricing (weighted average price, spread)
- ui/: Quote display (Textual TUI or plain console lines)
"""

__version__ = "0.1.0"
