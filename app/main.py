from fastapi import FastAPI

from app.errors import register_exception_handlers
from app.logging_config import setup_logging
from app.routes.auth import router as auth_router
from app.routes.health import router as health_router
from app.routes.invites import router as invites_router
from app.routes.members import router as members_router
from app.routes.profile import router as profile_router
from app.routes.projects import router as projects_router
from app.routes.tasks import router as tasks_router
from app.routes.workspaces import router as workspaces_router

def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(title="workspaces-api", version="0.1.0")
    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(workspaces_router)
    app.include_router(members_router)
    app.include_router(projects_router)
    app.include_router(tasks_router)
    app.include_router(invites_router)
    return app

app = create_app()
