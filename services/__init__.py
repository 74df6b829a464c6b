"""
Long-running services: webhook notifications and the monitoring daemon.
"""
