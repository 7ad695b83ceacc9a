"""
Accounts module for server-side credential storage.
"""
