"""
coincheck_adapter: keeps local trading orders in sync with the Coincheck exchange.
"""

__version__ = "0.1.0"
