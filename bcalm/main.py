# bcalm/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bcalm.api.v1.analysis import router as analysis_router
from bcalm.api.v1.assessments import router as assessments_router
from bcalm.api.v1.profile import router as profile_router
from bcalm.core.config import Settings, settings as default_settings
from bcalm.core.errors import ServiceError
from bcalm.db.session import build_engine, build_session_factory, close_db, init_db
from bcalm.repositories.memory import build_memory_repositories
from bcalm.repositories.sql import build_sql_repositories
from bcalm.services.analysis import AnalysisService
from bcalm.services.assessment import AssessmentService
from bcalm.services.profile import ProfileService

logger = logging.getLogger(__name__)

def configure_logging(cfg: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, cfg.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

def create_app(cfg: Optional[Settings] = None) -> FastAPI:
    cfg = cfg or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(cfg)
        engine = None
        if cfg.REPOSITORY_BACKEND == "memory":
            repos = build_memory_repositories()
        else:
            engine = build_engine(cfg.DATABASE_URL, echo=cfg.DATABASE_ECHO)
            await init_db(engine)
            repos = build_sql_repositories(build_session_factory(engine))

        assessment_service = AssessmentService(repos)
        await assessment_service.seed_questions()
        app.state.assessment_service = assessment_service
        app.state.analysis_service = AnalysisService(repos, settings=cfg)
        app.state.profile_service = ProfileService(repos)
        logger.info("bcalm api started (env=%s, backend=%s)", cfg.APP_ENV, cfg.REPOSITORY_BACKEND)

        yield

        await app.state.analysis_service.shutdown()
        if engine is not None:
            await close_db(engine)

    app = FastAPI(title="bcalm API", lifespan=lifespan)

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    app.include_router(assessments_router, prefix="/api/v1")
    app.include_router(analysis_router, prefix="/api/v1")
    app.include_router(profile_router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app

app = create_app()
