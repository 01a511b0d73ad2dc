"""
wagateway: keeps messaging sessions alive and republishes their events to an
HTTP consumer through signed webhooks.
"""

__version__ = "0.1.0"
