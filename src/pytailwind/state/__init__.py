"""State layer.

This package is the single source of truth for how door observations from
HTTP polling and push notifications are merged into the tracked door state.
"""
