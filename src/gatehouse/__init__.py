"""Gatehouse — multi-tenant authentication and account management.

Accounts own API keys and users; users log in with a username and password
scoped to an account and receive signed bearer tokens whose fingerprints are
persisted server-side so that logout actually revokes them.
"""

__version__ = "0.1.0"
