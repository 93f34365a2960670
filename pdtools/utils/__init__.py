"""
Local workspace utilities.
"""
