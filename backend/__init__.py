"""
PR Dashboard - REST API for open pull requests.

Provides a FastAPI backend that serves cached, periodically refreshed
open-PR lists from GitHub to the dashboard frontend.
"""
