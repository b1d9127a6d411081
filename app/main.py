from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from app.core.config import settings
from app.api import auth, invitations, accounts, contacts, vendors, deals, projects, deliverables, tasks, gmail

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Ops Portal API", version="1.0.0")

allowed_origins = settings.get_allowed_origins()

# Note: CORS headers are added even on errors via exception handlers
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Ensure CORS headers are included even on unhandled exceptions"""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}")

    response = JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

    # Add CORS headers manually
    origin = request.headers.get("origin")
    if origin and origin in allowed_origins:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "*"

    return response

# Include routers
# Deliverables share the /api/projects prefix; their paths are all nested
# under /{project_id}/deliverables so they never shadow project routes.
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(invitations.router, prefix="/api/invitations", tags=["invitations"])
app.include_router(accounts.router, prefix="/api/accounts", tags=["accounts"])
app.include_router(contacts.router, prefix="/api/contacts", tags=["contacts"])
app.include_router(vendors.router, prefix="/api/vendors", tags=["vendors"])
app.include_router(deals.router, prefix="/api/deals", tags=["deals"])
app.include_router(projects.router, prefix="/api/projects", tags=["projects"])
app.include_router(deliverables.router, prefix="/api/projects", tags=["deliverables"])
app.include_router(tasks.router, prefix="/api/tasks", tags=["tasks"])
app.include_router(gmail.router, prefix="/api/gmail", tags=["gmail"])


@app.get("/")
async def root():
    return {"message": "Ops Portal API", "version": "1.0.0"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
