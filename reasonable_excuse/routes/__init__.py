"""
API Routes

HTTP endpoint handlers, one module per route group. Route groups with a
configurable mount point are included by main.py under that prefix.
"""

from .upload import router as upload_router
from .firefly import router as firefly_router
from .calendar import router as calendar_router
from .pcs import router as pcs_router
from .system import router as system_router

__all__ = ['upload_router', 'firefly_router', 'calendar_router', 'pcs_router', 'system_router']
