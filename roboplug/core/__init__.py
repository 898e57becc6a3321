"""
roboplug Core - Host-side building blocks.

This module contains:
- Event Dispatcher: synchronous listener and subscriber registration
"""

__all__ = []
