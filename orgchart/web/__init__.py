"""
Web application module.
FastAPI-based web interface for orgchart.
"""

from .app import app, db_manager, store

__all__ = ['app', 'db_manager', 'store']
