"""
Routes package for the Task API.

This package contains route blueprints:
- api: REST API endpoints for programmatic access
"""
