"""
Domain layer: stored objects, expiry, access control and errors.
"""
