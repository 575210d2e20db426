"""
API module: HTTP endpoints for inbound webhooks.
"""
