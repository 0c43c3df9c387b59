"""
Generic helpers shared across modules (logging setup).
"""
