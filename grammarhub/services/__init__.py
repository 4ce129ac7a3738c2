"""
Service layer: account, approval, results and progress operations.
"""
