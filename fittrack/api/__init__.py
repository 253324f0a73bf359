from .routes import router
from .auth_routes import router as auth_router
from .function_routes import router as function_router

__all__ = ["router", "auth_router", "function_router"]
