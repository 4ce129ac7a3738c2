"""
Client library: local progress store, backend connector and session guard.
"""
