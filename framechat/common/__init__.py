"""
Shared code for the framechat client and server.

Contains:
- Protocol constants
- Framing codecs
- Command parsing and response texts
"""
