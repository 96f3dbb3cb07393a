import logging
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from accounts.config import settings
from accounts.database import Base, engine
from accounts.routers import accounts
from accounts.utils.db_migrations import ensure_account_soft_delete_column
from accounts.utils.response import create_response, handle_exception

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)

# Legacy tables first, then anything missing
ensure_account_soft_delete_column(engine)
Base.metadata.create_all(bind=engine)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info("Malformed request to %s: %s", request.url.path, exc.errors())
    return create_response(
        message="Invalid request body",
        data=None,
        status_code=status.HTTP_400_BAD_REQUEST,
        code="InvalidField",
    )


app.include_router(accounts.router)

# Serve locally stored profile photos
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get("/")
def home():
    try:
        return create_response(
            message="Accounts API running",
            data={"service": "accounts-backend"},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("accounts.main:app", host="0.0.0.0", port=settings.PORT)
