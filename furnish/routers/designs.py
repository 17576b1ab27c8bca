"""
Design API — generation, listing and deletion of furniture designs.

POST   /api/designs            — Manual parameters → Design, persisted
POST   /api/designs/interpret  — Free text → Design (ai_enhanced), persisted
POST   /api/designs/preview    — Manual parameters → Design, not persisted
GET    /api/designs/catalog    — Furniture types, defaults, materials and palettes
GET    /api/designs            — Current user's designs, prices recomputed
GET    /api/designs/{id}       — One design with cost breakdown, price recomputed
GET    /api/designs/{id}/parts.csv — Bill of parts with line costs as CSV
DELETE /api/designs/{id}       — Delete an owned design

Prices are never read from the stored total: every response re-runs the
Cost Model against the stored parts and material with the current rates.
"""

import csv
import io
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..config import settings
from ..database import get_db
from ..engine.assembler import Design, DesignAssembler
from ..engine.catalog import CATALOG
from ..engine.cost_model import cost_breakdown
from ..engine.rates import RateTable
from .materials import get_rate_table

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/designs", tags=["designs"])


def record_to_design(record: models.DesignRecord) -> Design:
    """Rebuild the engine value from stored facts."""
    return Design.model_validate({
        "furniture_type": record.furniture_type,
        "material": record.material,
        "material_color": record.material_color,
        "dimensions": record.dimensions_json,
        "parts": record.parts_json,
        "total_cost": record.total_cost or 0.0,
        "assembly_time": record.assembly_time or 0,
        "instructions": record.instructions_json,
        "ai_enhanced": bool(record.ai_enhanced),
        "user_query": record.user_query,
    })


def design_to_record(design: Design, user_id: int) -> models.DesignRecord:
    data = design.model_dump(mode="json")
    return models.DesignRecord(
        user_id=user_id,
        furniture_type=data["furniture_type"],
        material=data["material"],
        material_color=data["material_color"],
        dimensions_json=data["dimensions"],
        parts_json=data["parts"],
        instructions_json=data["instructions"],
        total_cost=data["total_cost"],
        assembly_time=data["assembly_time"],
        ai_enhanced=data["ai_enhanced"],
        user_query=data["user_query"],
    )


def get_owned_design(design_id: int, db: Session, user: models.User) -> models.DesignRecord:
    record = db.query(models.DesignRecord).filter(models.DesignRecord.id == design_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="Design not found")
    if record.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not your design")
    return record


def _design_response(record: models.DesignRecord, design: Design, rates: RateTable,
                     include_breakdown: bool = False) -> dict:
    body = {
        "id": record.id,
        **design.model_dump(mode="json"),
        "currency": settings.CURRENCY,
        "created_at": record.created_at.isoformat() if record.created_at else None,
        "updated_at": record.updated_at.isoformat() if record.updated_at else None,
    }
    if include_breakdown:
        body["cost_breakdown"] = cost_breakdown(design.parts, design.material, rates)
    return body


def _persist(design: Design, db: Session, user: models.User, rates: RateTable) -> dict:
    record = design_to_record(design, user.id)
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Design %d created for user %d (%s/%s, ai=%s)", record.id, user.id,
                design.furniture_type, design.material, design.ai_enhanced)
    return _design_response(record, design, rates, include_breakdown=True)


# --- Endpoints ---

@router.get("/catalog")
def get_catalog(rates: RateTable = Depends(get_rate_table)):
    return {
        "furniture_types": [
            schemas.CatalogType(
                id=spec.id,
                default_dimensions=spec.default_dimensions.model_dump(),
                default_material=spec.default_material,
                parts=[t.name for t in spec.part_templates],
            ).model_dump()
            for spec in CATALOG.values()
        ],
        "materials": [
            schemas.CatalogMaterial(
                material=rate.material,
                label=rate.label,
                colors=rate.colors,
                default_color=rate.default_color,
            ).model_dump()
            for rate in rates
        ],
        "currency": settings.CURRENCY,
    }


@router.post("/")
def create_design(
    request: schemas.DesignCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    rates: RateTable = Depends(get_rate_table),
):
    design = DesignAssembler(rates).assemble(
        request.furniture_type,
        request.material,
        request.dimensions,
        request.material_color,
    )
    return _persist(design, db, current_user, rates)


@router.post("/interpret")
def create_design_from_text(
    request: schemas.DesignInterpret,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    rates: RateTable = Depends(get_rate_table),
):
    design = DesignAssembler(rates).assemble_from_text(request.query)
    return _persist(design, db, current_user, rates)


@router.post("/preview")
def preview_design(
    request: schemas.DesignCreate,
    current_user: models.User = Depends(get_current_user),
    rates: RateTable = Depends(get_rate_table),
):
    design = DesignAssembler(rates).assemble(
        request.furniture_type,
        request.material,
        request.dimensions,
        request.material_color,
    )
    return {
        **design.model_dump(mode="json"),
        "currency": settings.CURRENCY,
        "cost_breakdown": cost_breakdown(design.parts, design.material, rates),
    }


@router.get("/")
def list_designs(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    rates: RateTable = Depends(get_rate_table),
):
    records = db.query(models.DesignRecord).filter(
        models.DesignRecord.user_id == current_user.id
    ).order_by(models.DesignRecord.created_at.desc(), models.DesignRecord.id.desc()).all()

    assembler = DesignAssembler(rates)
    return [
        _design_response(record, assembler.refresh(record_to_design(record)), rates)
        for record in records
    ]


@router.get("/{design_id}")
def get_design(
    design_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    rates: RateTable = Depends(get_rate_table),
):
    record = get_owned_design(design_id, db, current_user)
    design = DesignAssembler(rates).refresh(record_to_design(record))
    return _design_response(record, design, rates, include_breakdown=True)


@router.get("/{design_id}/parts.csv")
def export_parts_csv(
    design_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    rates: RateTable = Depends(get_rate_table),
):
    """Bill of parts as CSV, priced at the current rates."""
    record = get_owned_design(design_id, db, current_user)
    design = DesignAssembler(rates).refresh(record_to_design(record))

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([
        "Part Name", "Quantity", "Material",
        f"Unit Cost ({settings.CURRENCY})", f"Total Cost ({settings.CURRENCY})",
    ])
    for line in cost_breakdown(design.parts, design.material, rates):
        writer.writerow([
            line["name"], line["quantity"], line["material"],
            f"{line['unit_cost']:.2f}", f"{line['line_total']:.2f}",
        ])
    writer.writerow(["TOTAL", "", "", "", f"{design.total_cost:.2f}"])

    filename = f"design-{record.id}-{design.furniture_type.replace(' ', '-')}-parts.csv"
    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete("/{design_id}")
def delete_design(
    design_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    record = get_owned_design(design_id, db, current_user)
    db.delete(record)
    db.commit()
    logger.info("Design %d deleted by user %d", design_id, current_user.id)
    return {"ok": True, "deleted": design_id}
