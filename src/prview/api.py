"""HTTP surface of the dashboard."""

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from prview.app import DashboardApplication
from prview.diff.render import ViewType
from prview.exceptions import (
    APIError,
    AuthenticationError,
    ConfigurationError,
    PrviewException,
    ResourceNotFoundError,
    SecurityError,
    ValidationError,
)
from prview.logger import get_logger
from prview.security import SecurityValidator


logger = get_logger("api")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def configuration_error_handler(
    request: Request, exc: ConfigurationError
) -> JSONResponse:
    logger.error(f"Configuration error on {request.url.path}: {exc}")
    return _error(500, str(exc))


async def security_error_handler(
    request: Request, exc: SecurityError
) -> JSONResponse:
    logger.error(f"Security error on {request.url.path}: {exc}")
    return _error(500, str(exc))


async def validation_error_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    return _error(400, str(exc))


async def not_found_handler(
    request: Request, exc: ResourceNotFoundError
) -> JSONResponse:
    return _error(404, str(exc) or "Resource not found")


async def authentication_error_handler(
    request: Request, exc: AuthenticationError
) -> JSONResponse:
    return _error(401, str(exc) or "Authentication failed")


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    status_code = exc.status_code if exc.status_code and exc.status_code >= 400 else 502
    return _error(status_code, exc.message or "Upstream request failed")


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error on {request.url.path}: "
        f"{SecurityValidator.sanitize_error_message(exc)}"
    )
    return _error(500, "Internal server error")


def build_router(application: DashboardApplication) -> APIRouter:
    router = APIRouter(prefix="/api")

    @router.get("/health")
    def health() -> dict:
        return application.health()

    @router.get("/prs")
    def list_pull_requests() -> dict:
        return application.list_pull_requests().to_dict()

    @router.get("/prs/{owner}/{repo}/{pr_number}/files")
    def pull_request_files(owner: str, repo: str, pr_number: str) -> dict:
        return application.get_pull_request_files(owner, repo, pr_number).to_dict()

    @router.get("/prs/{owner}/{repo}/{pr_number}/view")
    def pull_request_view(
        owner: str,
        repo: str,
        pr_number: str,
        view_type: ViewType = Query(ViewType.SPLIT, alias="viewType"),
        expand_all: bool = Query(False, alias="expandAll"),
    ) -> dict:
        return application.view_pull_request(
            owner, repo, pr_number, view_type=view_type, expand_all=expand_all
        )

    return router


def create_app(application: DashboardApplication | None = None) -> FastAPI:
    application = application or DashboardApplication.from_env()

    app = FastAPI(title="prview", version="0.1.0")
    app.state.application = application
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(application.config.cors_origins),
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_exception_handler(SecurityError, security_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ResourceNotFoundError, not_found_handler)
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(PrviewException, unexpected_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    app.include_router(build_router(application))
    return app
