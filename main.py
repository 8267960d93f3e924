from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from database import Base, engine
from config import get_settings
from errors import ApiError
from logger import get_logger, setup_logging

from routes_license import router as license_router
from routes_trial import router as trial_router
from routes_webhooks import router as webhooks_router
from routes_student import router as student_router

settings = get_settings()
setup_logging(settings.log_level)
log = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    log.info("Fence license server started")
    yield


app = FastAPI(title="Fence License Server", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(license_router)
app.include_router(trial_router)
app.include_router(webhooks_router)
app.include_router(student_router)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# error code for a body that is absent or of the wrong shape, per route
VALIDATION_ERROR_CODES = {
    "/api/activate": ("missing_params", "License code and device ID are required"),
    "/api/license/store": ("missing_params", "code, email and type are required"),
    "/api/trial/check": ("missing_device_id", "Device ID is required"),
    "/api/student/verify": ("invalid_email", "Please enter a valid email address."),
}


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error, message = VALIDATION_ERROR_CODES.get(request.url.path, ("missing_params", "Invalid request"))
    return JSONResponse(status_code=400, content=ApiError(400, error, message).to_dict())


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    log.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "server_error", "message": "Server error"},
    )


@app.get("/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=3000)
