"""
Chat module for server-side messaging functionality.

Handles:
- Reading frames off client connections
- Tracking connected users
- Broadcasting and direct messages
- Command dispatching
"""
