"""FastAPI application entry point."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cre_underwriting.api.routes import debt, scenarios, sectors, sensitivity, underwriting, waterfall
from cre_underwriting.config import settings

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.app_name,
    description="Commercial Real Estate Underwriting Engine",
    version="0.1.0",
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(underwriting.router)
app.include_router(waterfall.router)
app.include_router(sectors.router)
app.include_router(sensitivity.router)
app.include_router(scenarios.router)
app.include_router(debt.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
