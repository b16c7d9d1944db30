# Strongbox - FastAPI Backend
#
# REST API for registration, login and encrypted record CRUD.
# create_app() wires configuration, storage, services and routers;
# typed errors are translated to HTTP responses in one place.

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .. import __version__
from ..auth import IdentityService, TokenManager
from ..config import StrongboxConfig
from ..core import AuditLogger, EventSeverity, EventType, get_audit_logger
from ..errors import InternalError, StrongboxError
from ..storage import Storage, create_storage
from ..vault import CipherAuthenticationError, FieldCipher, RecordStore
from .auth_routes import router as auth_router
from .record_routes import router as record_router
from .security import AccessGate

logger = logging.getLogger(__name__)


def _internal_event_type(exc: InternalError) -> EventType:
    if isinstance(exc, CipherAuthenticationError):
        return EventType.CIPHER_ERROR
    return EventType.STORAGE_ERROR


def create_app(
    config: StrongboxConfig,
    storage: Optional[Storage] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        config: Validated server configuration
        storage: Storage backend (built from config when omitted)
        audit_logger: Audit logger (process default when omitted)
    """
    audit = audit_logger or get_audit_logger()
    if storage is None:
        storage = create_storage(config.storage_backend, config.database_path)

    tokens = TokenManager(config.jwt_secret)
    cipher = FieldCipher(config.crypto_key)

    app = FastAPI(
        title="Strongbox API",
        description="Password manager backend with encrypted record storage",
        version=__version__,
    )

    app.state.config = config
    app.state.storage = storage
    app.state.audit_logger = audit
    app.state.identity_service = IdentityService(
        storage, tokens, audit_logger=audit, bcrypt_rounds=config.bcrypt_rounds
    )
    app.state.record_store = RecordStore(storage, storage, cipher, audit_logger=audit)
    app.state.access_gate = AccessGate(tokens, audit_logger=audit)

    @app.exception_handler(StrongboxError)
    async def strongbox_error_handler(request: Request, exc: StrongboxError):
        if isinstance(exc, InternalError):
            audit.log_event(
                event_type=_internal_event_type(exc),
                severity=EventSeverity.CRITICAL,
                message=f"Internal error on {request.method} {request.url.path}: {exc}",
            )
            logger.error("Internal error: %s", exc, exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid request body"},
        )

    app.include_router(auth_router)
    app.include_router(record_router)

    @app.get("/health")
    async def health():
        return {"status": "OK"}

    return app


def start_api_server(config: StrongboxConfig, audit_logger: Optional[AuditLogger] = None):
    """Build the app and serve it with uvicorn (blocks until shutdown)."""
    app = create_app(config, audit_logger=audit_logger)
    try:
        uvicorn.run(
            app,
            host=config.host,
            port=config.port,
            log_level=config.log_level.lower(),
        )
    finally:
        app.state.storage.close()
