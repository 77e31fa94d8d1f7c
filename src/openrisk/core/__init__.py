"""Core business logic — scoring, area classification, interpretation, and data models.

This module is framework-agnostic and does no I/O. It has no dependency on
MCP, FastMCP, or the SQLite store; the server and the store import from here.
"""
