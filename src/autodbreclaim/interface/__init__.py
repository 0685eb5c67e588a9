"""
Interface layer.

Command-line entry points and console rendering.
"""
