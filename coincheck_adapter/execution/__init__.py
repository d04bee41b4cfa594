"""
Order models, trading-mode strategy dispatch and order reconciliation.

Exchange-agnostic pieces of the adapter: the Order lifecycle, the closed
mode -> strategy table, and the state machine that derives fills and status
from an exchange's open-orders snapshot and transaction history.
"""
