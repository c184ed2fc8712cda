"""
CLI commands for the tpmap package.
"""
