"""
Order API — the Tamper Gate sits in front of every order write.

POST   /api/orders               — read design → verify price → write order
GET    /api/orders               — current user's orders
GET    /api/orders/admin/all     — every order, admin only (optional ?status=)
GET    /api/orders/{id}          — one owned order
DELETE /api/orders/{id}          — delete an owned order
PATCH  /api/orders/{id}/status   — admin status update, appended to history

A PriceIntegrityViolation is logged on the security logger and the order is
never persisted. It is not retried or corrected.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, require_admin
from ..config import settings
from ..database import get_db
from ..engine.errors import PriceIntegrityViolation
from ..engine.rates import RateTable
from ..engine.tamper_gate import TamperGate
from .designs import get_owned_design, record_to_design
from .materials import get_rate_table

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("furnish.security")

router = APIRouter(prefix="/orders", tags=["orders"])


def _order_to_dict(o: models.OrderRecord) -> dict:
    return {
        "id": o.id,
        "design_id": o.design_id,
        "submitted_total": o.submitted_total,
        "verified_total": o.verified_total,
        "currency": o.currency,
        "shipping_address": o.shipping_address,
        "design": o.design_snapshot,
        "status": o.status,
        "status_history": o.status_history or [],
        "created_at": o.created_at.isoformat() if o.created_at else None,
        "updated_at": o.updated_at.isoformat() if o.updated_at else None,
    }


def _history_entry(status: str, note: str = None) -> dict:
    entry = {"status": status, "timestamp": datetime.utcnow().isoformat()}
    if note:
        entry["note"] = note
    return entry


def _get_owned_order(order_id: int, db: Session, user: models.User) -> models.OrderRecord:
    order = db.query(models.OrderRecord).filter(models.OrderRecord.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if order.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not your order")
    return order


@router.post("/")
def place_order(
    request: schemas.OrderCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    rates: RateTable = Depends(get_rate_table),
):
    record = get_owned_design(request.design_id, db, current_user)
    design = record_to_design(record)

    gate = TamperGate(rates, tolerance=settings.PRICE_TOLERANCE)
    try:
        verified_total = gate.verify(design, request.submitted_total)
    except PriceIntegrityViolation as e:
        security_logger.warning(
            "Order blocked — price integrity violation: user=%d design=%d "
            "submitted=%.2f recomputed=%.2f",
            current_user.id, record.id, request.submitted_total, e.recomputed,
        )
        raise

    status = models.OrderStatus.PROCESSING.value
    order = models.OrderRecord(
        user_id=current_user.id,
        design_id=record.id,
        submitted_total=request.submitted_total,
        verified_total=verified_total,
        currency=settings.CURRENCY,
        shipping_address=request.shipping_address.model_dump(),
        design_snapshot=design.model_copy(update={"total_cost": verified_total}).model_dump(mode="json"),
        status=status,
        status_history=[_history_entry(status)],
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    logger.info("Order %d placed by user %d for design %d at %.2f",
                order.id, current_user.id, record.id, verified_total)
    return _order_to_dict(order)


@router.get("/")
def list_orders(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    orders = db.query(models.OrderRecord).filter(
        models.OrderRecord.user_id == current_user.id
    ).order_by(models.OrderRecord.created_at.desc(), models.OrderRecord.id.desc()).all()
    return [_order_to_dict(o) for o in orders]


@router.get("/admin/all")
def list_all_orders(
    status: Optional[models.OrderStatus] = None,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
):
    """Every customer's orders for the factory board, optionally one status only."""
    query = db.query(models.OrderRecord)
    if status is not None:
        query = query.filter(models.OrderRecord.status == status.value)
    orders = query.order_by(models.OrderRecord.created_at.desc(), models.OrderRecord.id.desc()).all()
    return [{**_order_to_dict(o), "customer_email": o.user.email} for o in orders]


@router.get("/{order_id}")
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return _order_to_dict(_get_owned_order(order_id, db, current_user))


@router.delete("/{order_id}")
def delete_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    order = _get_owned_order(order_id, db, current_user)
    db.delete(order)
    db.commit()
    logger.info("Order %d deleted by user %d", order_id, current_user.id)
    return {"ok": True, "deleted": order_id}


@router.patch("/{order_id}/status")
def update_order_status(
    order_id: int,
    update: schemas.OrderStatusUpdate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
):
    order = db.query(models.OrderRecord).filter(models.OrderRecord.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if order.status in (models.OrderStatus.DELIVERED.value, models.OrderStatus.CANCELLED.value):
        raise HTTPException(status_code=400, detail=f"Order is {order.status} — status is final")

    # Reassign so the JSON column is flagged dirty
    order.status_history = list(order.status_history or []) + [
        _history_entry(update.status.value, update.note)
    ]
    order.status = update.status.value
    db.commit()
    db.refresh(order)
    logger.info("Order %d moved to %s by admin %d", order.id, order.status, admin.id)
    return _order_to_dict(order)
