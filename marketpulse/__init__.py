"""MarketPulse - Cross-Source Market Briefing Core.

A small, testable Python package that scores news articles, podcast
episodes and emails for market relevance and composes a deterministic
morning-briefing snapshot from them.
"""

__version__ = "0.3.1"
