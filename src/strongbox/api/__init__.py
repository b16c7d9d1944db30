# API Module - FastAPI application, routers and access gate

from .main import create_app, start_api_server
from .security import AccessGate, Caller, require_caller

__all__ = ["create_app", "start_api_server", "AccessGate", "Caller", "require_caller"]
