"""HTTP client module for urloauth.

Provides :class:`SyncClient`, a blocking client backed by
:class:`httpx.Client` that authenticates requests through the auth schemes
of an :class:`~urloauth.context.OAuthContext`.

Example::

    from urloauth.client import SyncClient

    with SyncClient(context) as client:
        resp = client.get("https://api.example.com/data")
"""

from urloauth.client.sync_client import SyncClient

__all__ = ["SyncClient"]
