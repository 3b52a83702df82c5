"""
bloghouse: client for the Blog House platform.

Relays server-pushed provisioning progress (VPS setup, blog creation) into a
local session state machine, and wraps the platform's REST endpoints with
typed cache invalidation.
"""

__version__ = "0.1.0"
