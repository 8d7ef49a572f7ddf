"""
Utility modules for exceptions and dependency injection.
"""
