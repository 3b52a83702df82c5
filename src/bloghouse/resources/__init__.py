"""
REST resource operations for bloghouse.

Each module groups related endpoints:
- vps.py: saved VPS configurations and connection checks
- blogs.py: blog domain checks
- wordpress.py: WordPress site registry
- features.py: feature flags
- notifications.py: in-app notifications
- network.py: user discovery and connections

Operations return `{"success": bool, ...}` dictionaries and never raise for
API failures.
"""
