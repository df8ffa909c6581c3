"""Logistics domain API package."""

from logistics.api.routes import booking_router, invoice_request_router, retention_router

__all__ = ["booking_router", "invoice_request_router", "retention_router"]
