"""
Microsoft Graph integration for calsync.

Provides Outlook calendars and contacts as a calendar provider.
"""

from calsync.integrations.microsoft_graph.adapter import MicrosoftGraphAdapter
from calsync.integrations.microsoft_graph.client import MicrosoftGraphClient
from calsync.integrations.microsoft_graph.provider import MicrosoftGraphProvider

__all__ = [
    "MicrosoftGraphAdapter",
    "MicrosoftGraphClient",
    "MicrosoftGraphProvider",
]
