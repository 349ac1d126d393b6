"""
HTTP API for Increment.
"""

from increment.api.app import create_app, run_server

__all__ = ["create_app", "run_server"]
