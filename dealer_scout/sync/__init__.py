# File: dealer_scout/sync/__init__.py
"""dealer_scout.sync: Opportunity sync proxy in front of the CRM REST API."""

from .proxy import SUCCESS_MESSAGE, OpportunitySync, SyncOutcome
from .token_store import TokenStore

__all__ = ["OpportunitySync", "SyncOutcome", "TokenStore", "SUCCESS_MESSAGE"]
