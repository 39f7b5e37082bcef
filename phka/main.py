# main.py
"""
FastAPI backend for the Phka beauty shop.
Provides:
- Registration & login (JWT bearer tokens backed by a token table)
- Role-based access control (customer, admin, super_admin)
- Product catalog, categories, stores and reviews
- Persistent carts and checkout -> orders, with stock audit trail
- Beauty tips, tutorials and skin-type quizzes
- Community posts and customer support tickets
- Admin moderation and fulfilment endpoints
Run:
  uvicorn phka.main:app --reload --port 8000
Seed demo data first with:
  python -m phka.create_db
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from phka.config import ALLOWED_ORIGINS, APP_NAME, APP_VERSION, LOG_FORMAT, LOG_LEVEL
from phka.database import create_tables
from phka.responses import (
    http_exception_handler,
    send_response,
    unhandled_exception_handler,
    validation_exception_handler,
)
from phka.routers import ROUTERS

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_tables()
    logger.info("%s %s started", APP_NAME, APP_VERSION)
    yield


# ---------- App setup ----------
app = FastAPI(title=APP_NAME, version=APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

for router in ROUTERS:
    app.include_router(router)


@app.get("/api/ping")
def ping():
    return send_response({"status": "ok"})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("phka.main:app", host="127.0.0.1", port=8000, reload=True)
