"""
Rate table administration.

The engine ships DEFAULT_MATERIAL_RATES; persisted rows override the numeric
fields per material. Every design computation builds its RateTable through
get_rate_table so that rate changes reach listings and the Tamper Gate
immediately.
"""

import logging
import math
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import require_admin
from ..database import get_db
from ..engine.rates import DEFAULT_MATERIAL_RATES, DEFAULT_RATES, RateTable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/materials", tags=["materials"])

DEFAULT_RATE_ROWS = {
    material: {
        "unit_cost": rate.unit_cost,
        "labor_minutes_per_part": rate.labor_minutes_per_part,
        "assembly_surcharge": rate.assembly_surcharge,
        "notes": rate.label,
    }
    for material, rate in DEFAULT_MATERIAL_RATES.items()
}


def seed_rates(db: Session) -> int:
    """Insert default rows for materials that have none. Returns rows added."""
    added = 0
    for material, data in DEFAULT_RATE_ROWS.items():
        existing = db.query(models.MaterialRateRecord).filter(
            models.MaterialRateRecord.material == material
        ).first()
        if not existing:
            db.add(models.MaterialRateRecord(material=material, **data))
            added += 1
    db.commit()
    return added


def get_rate_table(db: Session = Depends(get_db)) -> RateTable:
    """FastAPI dependency — default rates overridden by persisted rows."""
    rows = db.query(models.MaterialRateRecord).all()
    if not rows:
        return DEFAULT_RATES
    return DEFAULT_RATES.with_overrides({
        row.material: {
            "unit_cost": row.unit_cost,
            "labor_minutes_per_part": row.labor_minutes_per_part,
            "assembly_surcharge": row.assembly_surcharge,
        }
        for row in rows
    })


@router.get("/seed")
def seed(db: Session = Depends(get_db)):
    """Seed default material rates."""
    added = seed_rates(db)
    return {"ok": True, "seeded": added}


@router.get("/", response_model=List[schemas.MaterialRate])
def list_rates(db: Session = Depends(get_db)):
    return db.query(models.MaterialRateRecord).order_by(models.MaterialRateRecord.id).all()


@router.patch("/{material}", response_model=schemas.MaterialRate)
def update_rate(
    material: str,
    update: schemas.MaterialRateUpdate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
):
    row = db.query(models.MaterialRateRecord).filter(
        models.MaterialRateRecord.material == material.lower()
    ).first()
    if not row:
        raise HTTPException(status_code=404, detail="Material not found — run /materials/seed first")
    for field, value in update.model_dump(exclude_unset=True).items():
        if field != "notes" and (value is None or not math.isfinite(value) or value < 0):
            raise HTTPException(status_code=400, detail=f"{field} must be a non-negative number")
        setattr(row, field, value)
    db.commit()
    db.refresh(row)
    logger.info("Rate for %s updated by user %d: %s", row.material, admin.id,
                update.model_dump(exclude_unset=True))
    return row
