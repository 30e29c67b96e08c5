from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from marketplace.config import get_settings
from marketplace.database import engine, Base
from marketplace import models  # noqa: F401  (registers tables on Base.metadata)
from marketplace.api import cart, categories, health, orders, products, stats, users

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Starting up application...")

    # Create database tables
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

    yield

    # Shutdown
    logger.info("Shutting down application...")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
    Backend for a secondhand marketplace.

    - **Catalog search**: exact filters, substring and full-text search,
      composable multi-criteria search, similar items, latest and most viewed
    - **Orders**: every order line keeps a snapshot of the product and
      seller as they were at purchase time
    - **Statistics**: grouped catalog and sales reports, cached in Redis

    ## Features

    ### View counting
    Opening a product's detail view increments its view counter with a
    single atomic UPDATE, so concurrent viewers are all counted.

    ### Price snapshots
    Price, name, condition and seller name are copied into the order line
    when the order is placed and can never be changed afterwards.

    ### Background processing
    Catalog statistics are recomputed by a Celery task, periodically and
    on demand.
    """,
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(health.router, prefix="/api/v1")
app.include_router(categories.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(products.router, prefix="/api/v1")
app.include_router(orders.router, prefix="/api/v1")
app.include_router(cart.router, prefix="/api/v1")
app.include_router(stats.router, prefix="/api/v1")


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/api/v1/health"
    }
