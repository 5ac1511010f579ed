import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from config import Settings, get_settings
from hateblock.audit import AuditLog, InMemoryAuditLog
from hateblock.classifier import create_classifier
from hateblock.lexicon import KeywordFilter
from hateblock.settings_store import SettingsStore
from api.routes import audit, scan, settings as settings_routes

logger = logging.getLogger(__name__)


def _build_audit_log(settings: Settings) -> AuditLog:
    if settings.audit_backend == "database":
        from services.audit_service import DatabaseAuditLog

        return DatabaseAuditLog(max_entries=settings.audit_log_max_entries)
    if settings.audit_backend != "memory":
        raise ValueError(f"Unknown audit backend: {settings.audit_backend}")
    return InMemoryAuditLog(max_entries=settings.audit_log_max_entries)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting HateBlock API")

        if settings.audit_backend == "database":
            from db.database import init_db

            await init_db()

        keyword_filter = (
            KeywordFilter.from_file(settings.keywords_file)
            if settings.keywords_file
            else KeywordFilter()
        )
        classifier = create_classifier(
            settings.classifier_backend,
            detoxify_model=settings.detoxify_model,
            moderation_api_url=settings.moderation_api_url,
            moderation_api_key=settings.moderation_api_key,
            moderation_model=settings.moderation_model,
        )
        if classifier is None:
            logger.info("No classifier configured; keyword filter only")

        app.state.settings_store = SettingsStore.from_settings(settings)
        app.state.audit_log = _build_audit_log(settings)
        app.state.keyword_filter = keyword_filter
        app.state.classifier = classifier
        app.state.label_text = settings.label_text

        # Load in the background so the API is reachable while the model warms up.
        load_task = asyncio.create_task(classifier.load()) if classifier is not None else None
        yield
        if load_task is not None and not load_task.done():
            load_task.cancel()
        logger.info("Shutting down HateBlock API")

    app = FastAPI(
        title="HateBlock",
        description="Hides hateful and toxic content in live pages",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(settings_routes.router, prefix="/api/settings", tags=["settings"])
    app.include_router(audit.router, prefix="/api/logs", tags=["logs"])
    app.include_router(scan.router, prefix="/api/scan", tags=["scan"])

    @app.get("/api/health")
    async def health():
        classifier = app.state.classifier
        return {
            "status": "ok",
            "classifier": classifier.state.value if classifier is not None else "none",
        }

    return app


_settings = get_settings()

logging.basicConfig(
    level=getattr(logging, _settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = create_app(_settings)
