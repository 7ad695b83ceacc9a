"""
framechat - broadcast text chat over fixed-width frames.

Sub-packages:
- common: wire constants, framing codecs and command parsing
- server: acceptor, connection ingestors, broadcast router and account store
- client: interactive terminal client
"""

__version__ = '1.0.0'
