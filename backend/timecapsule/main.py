import logging
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from timecapsule.api.routes.auth import router as auth_router
from timecapsule.api.routes.capsules import router as capsules_router
from timecapsule.api.routes.users import router as users_router
from timecapsule.core.config import Settings, settings as default_settings
from timecapsule.core.identity import build_identity_provider
from timecapsule.core.logging import configure_logging
from timecapsule.db.init_db import init_db
from timecapsule.db.session import Database
from timecapsule.storage.uploads import UPLOADS_URL_PREFIX

logger = logging.getLogger(__name__)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "msg": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"errors": errors}),
    )


def create_app(config: Settings | None = None) -> FastAPI:
    config = config or default_settings
    configure_logging(config.log_level)

    app = FastAPI(title="Time Capsule API", version="0.1.0")

    # one gateway handle per process, reached through app.state
    app.state.settings = config
    app.state.database = Database(config.database_url)
    app.state.identity_provider = build_identity_provider(config)

    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(users_router)
    app.include_router(capsules_router)
    app.include_router(auth_router)

    upload_dir = Path(config.upload_dir)
    app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=upload_dir, check_dir=False), name="uploads")

    @app.on_event("startup")
    def _startup() -> None:
        upload_dir.mkdir(parents=True, exist_ok=True)
        init_db(app.state.database)
        logger.info("%s started (env=%s, auth_mode=%s)", config.app_name, config.app_env, config.auth_mode)

    @app.on_event("shutdown")
    def _shutdown() -> None:
        app.state.database.dispose()

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
