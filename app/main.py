from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.academic_sessions.router import router as academic_sessions_router
from app.api.v1.assignments.router import router as assignments_router
from app.api.v1.attendance.router import router as attendance_router
from app.api.v1.grading.router import router as grading_router
from app.api.v1.notifications.router import router as notifications_router
from app.api.v1.students.router import router as students_router
from app.api.v1.supervisors.router import router as supervisors_router
from app.api.v1.weeks.router import router as weeks_router
from app.core.logging_config import setup_logging


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title="SIWES Logbook Backend")

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(academic_sessions_router)
    app.include_router(supervisors_router)
    app.include_router(students_router)
    app.include_router(assignments_router)
    app.include_router(weeks_router)
    app.include_router(attendance_router)
    app.include_router(grading_router)
    app.include_router(notifications_router)

    return app


app = create_app()
