"""
Server package for the framechat broadcast chat service.

This package contains all server-side functionality including:
- Connection acceptance and frame ingestion
- Message routing and broadcasting
- Command dispatching
- Account storage
- Configuration and utilities
"""
