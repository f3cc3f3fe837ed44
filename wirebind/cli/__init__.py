"""
The ``wb`` command-line interface.

Usage:
    wb routes [--app module:attr]
    wb controllers [--app module:attr]
    wb serve [--app module:attr] [--host HOST] [--port PORT]
    wb version
"""
