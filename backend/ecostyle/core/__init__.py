"""
Core package for shared utilities.

Configuration, structured logging and HTTP security helpers shared by the
API layer and the services.
"""
