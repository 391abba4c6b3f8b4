from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from huda.routes import (auth, users, students, attendance,
                         subjects, grades, reports,
                         notifications, schedulers
)
from huda.database import engine
from huda.middleware import add_cors_middleware
from huda.models.all_models import Base
from contextlib import asynccontextmanager

@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    async with schedulers.lifespan(app):
        yield

app = FastAPI(title="Huda School Administration",
              description="Student records, attendance escalation and report-card release for a single school",
              version="1.0.0",
              lifespan=lifespan)
add_cors_middleware(app)



@app.get("/", include_in_schema=False)
async def root():
    """
    Root endpoint that redirects to the API documentation
    """
    return RedirectResponse(url="/docs")

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(students.router)
app.include_router(attendance.router)
app.include_router(subjects.router)
app.include_router(grades.router)
app.include_router(reports.router)
app.include_router(notifications.router)
app.include_router(schedulers.router)
