"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.order_writer import router as order_writer_router

__all__ = [
    "order_writer_router",
]
