"""HTTP service for driving cycle checks."""

from no_cycle_import.web.app import create_app

__all__ = ["create_app"]
