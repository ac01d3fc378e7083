import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import deps
from .api.routes import actions, misc
from .config import get_settings
from .workers.scheduler import get_scheduler

logger = logging.getLogger(__name__)

app = FastAPI(title="ClassMatch API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(actions.router, prefix="/api/v1")
app.include_router(misc.router, prefix="/api/v1")


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "action": "unknown",
            "message": "Request body must be a JSON object",
        },
    )


@app.on_event("startup")
async def startup_event() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    deps.get_services()
    if settings.scheduler_enabled:
        scheduler = get_scheduler(settings)
        scheduler.start()
        app.state.scheduler = scheduler
        logger.info("Scheduler started")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        scheduler.shutdown(wait=False)
