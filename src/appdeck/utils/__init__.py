"""
Utilities for AppDeck: configuration, on-disk cache and path helpers
"""
