"""
Exchange-specific adapters.

Each venue has a thin HTTP client, its placement strategies and the broker
adapter that composes them with the exchange-agnostic pieces in execution/.
"""
