"""
FastAPI web front end for the Local Library catalog.

This module provides:
- Server-rendered catalog pages through Jinja2 templates
- Form handling for creating, updating and deleting records
- Error pages and a health check
"""
