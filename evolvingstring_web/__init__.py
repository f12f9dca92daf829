"""
Web package for the evolving string generator, using Flask.
Wraps the evolvingstring core functions as a JSON API.
"""

from .app import app, create_app

__all__ = ['app', 'create_app']
