import logging
from contextlib import asynccontextmanager
from typing import Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from . import config
from .api.endpoints import auth, survey
from .database import create_db_and_tables, engine
from .errors import AuthenticationError, SurveyAppError

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# --- Konfiguration ---
IMAGES_DIR = config.PUBLIC_DIR / config.IMAGES_SUBDIR
STATIC_FILES_ROUTE = f"/{config.IMAGES_SUBDIR}"

# Upload-Verzeichnis direkt beim Import erstellen, vor app.mount
IMAGES_DIR.mkdir(parents=True, exist_ok=True)


# --- Lifecycle Events ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting")
    if config.DATABASE_URL.startswith("sqlite"):
        await create_db_and_tables()
    yield
    logger.info("Application shutting down")
    await engine.dispose()


# --- FastAPI App Instanz ---
app = FastAPI(title="Survey Authoring Backend", lifespan=lifespan)

logger.info("CORS allowed origins: %s", config.ALLOWED_ORIGINS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Hochgeladene Bilder ausliefern; der relative Pfad in der DB ist zugleich die URL
app.mount(STATIC_FILES_ROUTE, StaticFiles(directory=IMAGES_DIR), name="images")
logger.info("Serving '%s' under '%s'", IMAGES_DIR, STATIC_FILES_ROUTE)


# --- Fehlerbehandlung ---
@app.exception_handler(SurveyAppError)
async def survey_app_error_handler(request: Request, exc: SurveyAppError):
    headers = None
    if isinstance(exc, AuthenticationError) and exc.status_code == 401:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_dict(), headers=headers
    )


def _field_errors(errors) -> Dict[str, List[str]]:
    field_errors: Dict[str, List[str]] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = ".".join(loc) or "body"
        ctx_error = (error.get("ctx") or {}).get("error")
        message = str(ctx_error) if ctx_error else error.get("msg", "Invalid value")
        field_errors.setdefault(field, []).append(message)
    return field_errors


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
):
    return JSONResponse(
        status_code=422,
        content={
            "message": "The given data was invalid.",
            "errors": _field_errors(exc.errors()),
        },
    )


# --- API Endpunkte ---
@app.get("/")
async def read_root():
    return {"message": "Survey authoring backend"}


app.include_router(auth.router)
app.include_router(survey.router)
