"""
Ledger Client - Source Package

A small client for a personal transaction ledger served over HTTP.
It signs the user in, lists transactions with their running total,
and creates, edits and deletes entries through a modal form.

DESIGN PRINCIPLES:
1. The server owns the data, the client only caches it
2. Every mutation is followed by a full refetch
3. Expired credentials are refreshed once, transparently
4. A session that cannot be refreshed is thrown away entirely
"""

__version__ = "1.0.0"
__author__ = "Ledger Client Team"
