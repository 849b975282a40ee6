"""
OpenOcean Demo - Frontend Utilities
"""
from .session import get_settings, make_trader, render_sidebar, run_async

__all__ = ['get_settings', 'make_trader', 'render_sidebar', 'run_async']
