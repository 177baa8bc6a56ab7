import logging

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.core.config import get_settings
from app.models.database import Base, engine
from app.models import shared_file  # noqa: F401  registers the table
from app.routers import api, shares

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="FAZshare")

app.mount("/static", StaticFiles(directory="app/static"), name="static")

# include our routers
app.include_router(shares.router)
app.include_router(api.router)


@app.get("/health")
def health():
    return {"status": "ok"}
