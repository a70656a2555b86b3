import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fleetapp.config import settings
from fleetapp.database import SessionLocal, check_db_connection, init_db
from fleetapp.middleware.error_handler import register_exception_handlers
from fleetapp.services.user_service import user_service

from fleetapp.api.v1 import auth
from fleetapp.api.v1 import users
from fleetapp.api.v1 import vehicles
from fleetapp.api.v1 import trips
from fleetapp.api.v1 import dashboard

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Fleet management API: vehicles, trips, driver assignments and efficiency reports",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # ─── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ─── Exception Handlers ───────────────────────────────────────────────────
    register_exception_handlers(app)

    # ─── Routers ──────────────────────────────────────────────────────────────
    PREFIX = "/api/v1"
    app.include_router(auth.router,      prefix=PREFIX, tags=["Auth"])
    app.include_router(users.router,     prefix=PREFIX, tags=["Users"])
    app.include_router(vehicles.router,  prefix=PREFIX, tags=["Vehicles"])
    app.include_router(trips.router,     prefix=PREFIX, tags=["Trips"])
    app.include_router(dashboard.router, prefix=PREFIX, tags=["Dashboard"])

    # ─── Startup ──────────────────────────────────────────────────────────────
    @app.on_event("startup")
    def on_startup():
        ok = check_db_connection()
        logger.info("DB connected" if ok else "DB connection FAILED")
        if not ok:
            return
        if settings.AUTO_CREATE_TABLES:
            init_db()
        if settings.SEED_DEFAULT_ADMIN:
            db = SessionLocal()
            try:
                user_service.ensure_default_admin(db)
            finally:
                db.close()

    # ─── Health ───────────────────────────────────────────────────────────────
    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok", "app": settings.APP_NAME, "version": "1.0.0"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("fleetapp.main:app", host=settings.APP_HOST, port=settings.APP_PORT,
                reload=settings.is_development)
