"""
Per-sheet repository modules for database access.

Each module wraps the queries for one spreadsheet-shaped table; services call
these instead of touching the session directly.
"""
