from .router import router, slots_router

__all__ = ["router", "slots_router"]
