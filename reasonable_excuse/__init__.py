"""
reasonable-excuse

A small personal HTTP service: file uploads, Firefly III transaction
shortcuts and a filtering iCal proxy behind one listener.
"""

__version__ = "0.3.0"

USER_AGENT = f"reasonable-excuse/{__version__}"
