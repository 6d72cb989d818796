# FastAPI entrypoint with all routes and middleware

import logging
import os

import dotenv
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware

from apps.api.context import ServiceContext
from apps.api.settings import Settings
from auth.auth_routes import router as auth_router
from auth.security_middleware import (
    AuditLoggingMiddleware,
    BodySizeLimitMiddleware,
    HTTPSEnforcementMiddleware,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
    SecurityLoggingMiddleware,
)
from documents.doc_routes import router as document_router
from records.client_routes import router as client_router
from records.dashboard_routes import router as dashboard_router
from records.employee_routes import router as employee_router
from records.errors import RecordsError, ValidationError
from records.project_routes import router as project_router
from records.user_routes import router as user_router
from reports.report_routes import router as report_router

dotenv.load_dotenv()

API_VERSION = "1.0.0"


# ==================== EXCEPTION HANDLERS ====================

async def records_error_handler(request: Request, exc: RecordsError):
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = ValidationError.from_pydantic(exc)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception):
    # detail stays in the server log
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"message": "Server error"})


# ==================== APPLICATION FACTORY ====================

def create_app(settings: Settings = None) -> FastAPI:
    """
    Build an application instance around its own ServiceContext
    (database, auth manager, file store, rate-limit counters).
    """
    settings = settings or Settings()
    context = ServiceContext.build(settings)

    app = FastAPI(
        title="Records Management API",
        description="Employees, clients, projects and documents with role-based access",
        version=API_VERSION,
    )
    app.state.context = context

    # ==================== SECURITY MIDDLEWARE STACK ====================
    # last added runs first

    app.add_middleware(AuditLoggingMiddleware)
    app.add_middleware(SecurityLoggingMiddleware)
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(HTTPSEnforcementMiddleware, enabled=settings.environment == "production")
    app.add_middleware(SecurityHeadersMiddleware)

    # ==================== CORS MIDDLEWARE ====================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept", "Origin"],
        expose_headers=["Content-Disposition", "Content-Type", "Content-Length"],
        max_age=86400,
    )

    app.add_exception_handler(RecordsError, records_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # ==================== ROUTER REGISTRATION ====================

    app.include_router(auth_router)         # /api/auth
    app.include_router(user_router)         # /api/users
    app.include_router(employee_router)     # /api/employees
    app.include_router(client_router)       # /api/clients
    app.include_router(project_router)      # /api/projects
    app.include_router(document_router)     # /api/documents
    app.include_router(dashboard_router)    # /api/dashboard
    app.include_router(report_router)       # /api/reports

    @app.get("/")
    async def root():
        """Root endpoint - API information and routes."""
        routes = [
            {"path": path, "methods": sorted(method.upper() for method in operations)}
            for path, operations in app.openapi()["paths"].items()
        ]
        return {"message": "Records Management API", "version": API_VERSION, "routes": routes}

    @app.get("/api/health")
    def health_check():
        """Health check endpoint for monitoring system status."""
        healthy = context.database.health_check()
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={"status": "healthy" if healthy else "unhealthy", "database": healthy},
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Disposing database engine")
        context.close()

    logger.info(f"Records API ready ({settings.environment}, uploads in {settings.upload_dir})")
    return app


def main():
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    uvicorn.run(
        "apps.api.main:create_app",
        factory=True,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
    )


if __name__ == "__main__":
    main()
