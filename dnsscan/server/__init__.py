"""
API server package for dnsscan.

Provides a JSON and WebSocket interface for running scans.
"""

from .app import create_app, run_server

__all__ = ["create_app", "run_server"]
