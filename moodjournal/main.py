from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from moodjournal import database
from moodjournal.config import CORS_ORIGINS, HOST, LOG_LEVEL, PORT
from moodjournal.errors import AppError, ValidationFailure
from moodjournal.routes import admin, auth, guest, user

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger("moodjournal")


@asynccontextmanager
async def lifespan(app: FastAPI):
    client, db = database.connect()
    database.ensure_indexes(db)
    app.state.db = db
    yield
    database.close(client)


app = FastAPI(title="Mood Journal API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.debug("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return await app_error_handler(request, ValidationFailure())


app.include_router(auth.router)
app.include_router(user.router)
app.include_router(guest.router)
app.include_router(admin.router)


@app.get("/health")
def health_check():
    return {"status": "ok"}


def run():
    uvicorn.run(app, host=HOST, port=PORT)


if __name__ == "__main__":
    run()
