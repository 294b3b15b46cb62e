"""Core signal logic: candle models, indicators, event detection, policies.

This package contains pure business logic with no I/O dependencies
(no network or disk access). The live poller in app/ and the operator
scripts both drive it through SignalEngine.
"""
