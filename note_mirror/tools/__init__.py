"""
Command-line tooling and its configuration.
"""
