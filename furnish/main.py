from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from .config import settings
from .database import engine, Base
from .engine.errors import DesignError, PriceIntegrityViolation
from .routers import auth, designs, materials, orders

logger = logging.getLogger("furnish")

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.APP_NAME,
    description="Furniture design generation with deterministic, re-verifiable costing",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api")
app.include_router(designs.router, prefix="/api")
app.include_router(orders.router, prefix="/api")
app.include_router(materials.router, prefix="/api")


@app.exception_handler(PriceIntegrityViolation)
def price_integrity_handler(request: Request, exc: PriceIntegrityViolation):
    # Logged with user/design context by the orders router
    return JSONResponse(
        status_code=409,
        content={"detail": exc.message, "error": exc.code},
    )


@app.exception_handler(DesignError)
def design_error_handler(request: Request, exc: DesignError):
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "error": exc.code},
    )


@app.get("/health")
def health():
    return {"status": "ok", "app": "furnish"}


@app.on_event("startup")
def auto_seed():
    """Seed the default material rates on first run."""
    from .database import SessionLocal
    from .routers.materials import seed_rates
    db = SessionLocal()
    try:
        added = seed_rates(db)
        if added:
            logger.info("Seeded %d material rates", added)
    finally:
        db.close()
