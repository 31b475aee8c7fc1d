from videogen.api.routes import router

__all__ = ["router"]
