from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from .models import OrderStatus


class DimensionsIn(BaseModel):
    """Any subset of overall dimensions in cm. Omitted fields use catalog defaults."""
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None


class DesignCreate(BaseModel):
    furniture_type: str
    material: str
    dimensions: Optional[DimensionsIn] = None
    material_color: Optional[str] = None


class DesignInterpret(BaseModel):
    query: str


class ShippingAddress(BaseModel):
    full_name: str
    address_line: str
    city: str
    postal_code: str
    phone: Optional[str] = None


class OrderCreate(BaseModel):
    design_id: int
    submitted_total: float
    shipping_address: ShippingAddress


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    note: Optional[str] = None


class MaterialRateBase(BaseModel):
    unit_cost: Optional[float] = None
    labor_minutes_per_part: Optional[float] = None
    assembly_surcharge: Optional[float] = None
    notes: Optional[str] = None


class MaterialRateUpdate(MaterialRateBase):
    pass


class MaterialRate(MaterialRateBase):
    id: int
    material: str
    unit_cost: float
    labor_minutes_per_part: float
    assembly_surcharge: float
    updated_at: datetime
    class Config:
        from_attributes = True


class CatalogType(BaseModel):
    id: str
    default_dimensions: dict
    default_material: str
    parts: List[str]


class CatalogMaterial(BaseModel):
    material: str
    label: str
    colors: dict
    default_color: str
