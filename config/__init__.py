"""
Configuration, data models and persistence for the course monitor.
"""
