"""
Client package for the framechat broadcast chat service.

This package contains the interactive terminal client:
- Connection and frame I/O
- Local command validation and login prompts
- Configuration and utilities
"""
