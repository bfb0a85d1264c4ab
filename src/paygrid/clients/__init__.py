"""
Async clients for the Paygrid API.

Provides payment intent submission and status polling, corridor quotes,
and the ``Paygrid`` facade tying them to the signing helpers.
"""

from .http_client import PaygridHttpClient, PaymentIntentClient
from .corridors import CorridorQuotesClient
from .paygrid import Paygrid

__all__ = ["PaygridHttpClient", "PaymentIntentClient", "CorridorQuotesClient", "Paygrid"]
