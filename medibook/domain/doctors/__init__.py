from .router import applications_router, router

__all__ = ["applications_router", "router"]
