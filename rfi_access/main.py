import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from rfi_access.config import get_settings
from rfi_access.core.runtime import get_runtime
from rfi_access.errors import AccessError
from rfi_access.routers import access_requests, admin, auth, public, webhooks

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_runtime()
    yield


app = FastAPI(title="RFI Access API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AccessError)
async def access_error_handler(request: Request, exc: AccessError):
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(auth.router)
app.include_router(access_requests.router)
app.include_router(public.router)
app.include_router(admin.router)
app.include_router(webhooks.router)


@app.get("/")
def root():
    return {"message": "RFI Access API", "docs": "/docs"}


@app.get("/api/health")
def health():
    return {"status": "ok"}
