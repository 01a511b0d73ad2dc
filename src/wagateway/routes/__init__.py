"""
HTTP route handlers. Services are read from ``request.app.state``.
"""
