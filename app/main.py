from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from app.core.config import settings
from app.core.exceptions import ServiceError
from app.api import (
    auth,
    organizations,
    invitations,
    events,
    tickets,
    billing,
    webhooks,
    email,
    notifications,
    sms,
    ai,
)

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Tikiti API", version="1.0.0")

ALLOWED_ORIGINS = settings.get_allowed_origins()

# CORS headers are also added to unhandled errors by the handler below
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Ensure CORS headers are included even on unhandled exceptions"""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")

    response = JSONResponse(status_code=500, content={"detail": "Internal server error"})

    origin = request.headers.get("origin")
    if origin and origin in ALLOWED_ORIGINS:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "*"

    return response


# Events router carries full paths (/organizations/{id}/events, /events/..., /bookings/...)
app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(organizations.router, prefix="/organizations", tags=["organizations"])
app.include_router(invitations.router, prefix="/invitations", tags=["invitations"])
app.include_router(events.router, tags=["events"])
app.include_router(tickets.router, prefix="/tickets", tags=["tickets"])
app.include_router(billing.router, prefix="/billing", tags=["billing"])
app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
app.include_router(email.router, prefix="/email", tags=["email"])
app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
app.include_router(sms.router, prefix="/sms", tags=["sms"])
app.include_router(ai.router, prefix="/ai", tags=["ai"])


@app.get("/")
async def root():
    return {"message": "Tikiti API", "version": "1.0.0"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
