# Rentbook billing backend entrypoint.

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api import admin_billing
from backend.app.api import expenses
from backend.app.api import invoices
from backend.app.api import login
from backend.app.api import properties
from backend.app.api import recurring_invoices
from backend.app.api import register
from backend.app.core.errors import register_error_handlers
from backend.app.core.settings import get_settings
from backend.app.db.base import Base
from backend.app.db.session import engine

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title=settings.app_name)

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(register.router)
app.include_router(login.router)
app.include_router(properties.router)
app.include_router(invoices.router)
app.include_router(expenses.router)
app.include_router(recurring_invoices.router)
app.include_router(admin_billing.router)


@app.get("/")
def read_root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def create_tables():
    Base.metadata.create_all(bind=engine)
