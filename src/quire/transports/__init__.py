# Quire Sheets
# File: transports/__init__.py
# Version: v1

"""MCP transports for the Quire Sheets server."""
