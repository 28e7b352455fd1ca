from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from honesty_store.database import engine, Base
from honesty_store.stock.products.router import router as product_router
from honesty_store.stock.accounting.router import router as accounting_router

# Register every table on Base.metadata
from honesty_store.stock.products import models as product_models  # noqa: F401
from honesty_store.stock.accounting import models as accounting_models  # noqa: F401
from honesty_store.orders import models as order_models  # noqa: F401

from honesty_store.config import settings
from honesty_store.log_config import setup_logging

import os
import uvicorn
from contextlib import asynccontextmanager
from loguru import logger



# Database startup
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Application startup")
    Base.metadata.create_all(bind=engine)
    yield
    logger.info("Application shutdown")

# Create app
app = FastAPI(
    title="HONESTY STORE",
    description="Daily stock accounting for the college honesty store: products, reconciliation, history and export.",
    version="1.0.0",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Routers
app.include_router(product_router, prefix="/stock/products", tags=["Stock - Products"])
app.include_router(accounting_router, prefix="/stock/accounting", tags=["Stock - Accounting"])


@app.get("/health")
def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run(
        "honesty_store.main:app",
        host=os.getenv("SERVER_IP", "127.0.0.1"),
        port=int(os.getenv("SERVER_PORT", "8000")),
    )
