"""
Menu routes: the vendor's price list.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from tiffinos.api.dependencies import get_current_vendor, get_db
from tiffinos.models.customers import MealKind
from tiffinos.models.menu_items import MenuCategory
from tiffinos.models.vendors import Vendor
from tiffinos.services.menu_service import MenuService


class MenuItemResponse(BaseModel):
    id: UUID
    item_name: str
    category: MenuCategory
    meal_kind: Optional[MealKind] = None
    walk_in_price: int
    monthly_price: int
    description: Optional[str] = None
    is_default: bool
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class MenuItemCreateRequest(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=255)
    category: MenuCategory = MenuCategory.MEAL
    meal_kind: Optional[MealKind] = None
    walk_in_price: int = Field(0, ge=0)
    monthly_price: int = Field(0, ge=0)
    description: Optional[str] = Field(None, max_length=500)
    is_default: bool = False


class MenuItemUpdateRequest(BaseModel):
    item_name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[MenuCategory] = None
    meal_kind: Optional[MealKind] = None
    walk_in_price: Optional[int] = Field(None, ge=0)
    monthly_price: Optional[int] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=500)
    is_default: Optional[bool] = None


class MenuPricesResponse(BaseModel):
    """Per-meal price of each plate, as used for per-meal billing."""
    chapati_bhaji: int
    rice_plate: int


router = APIRouter(prefix="/menu", tags=["menu"])


@router.get("", response_model=List[MenuItemResponse])
def list_menu(
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    return MenuService(db).list_items(vendor.id)


@router.get("/prices", response_model=MenuPricesResponse)
def menu_prices(
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    plates = MenuService(db).plate_prices(vendor.id)
    return MenuPricesResponse(
        chapati_bhaji=plates[MealKind.CHAPATI_BHAJI],
        rice_plate=plates[MealKind.RICE_PLATE],
    )


@router.post("", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
def create_menu_item(
    payload: MenuItemCreateRequest,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    return MenuService(db).create_item(vendor.id, payload.model_dump())


@router.put("/{item_id}", response_model=MenuItemResponse)
def update_menu_item(
    item_id: UUID,
    payload: MenuItemUpdateRequest,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    return MenuService(db).update_item(vendor.id, item_id, payload.model_dump(exclude_unset=True))


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_menu_item(
    item_id: UUID,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    """Deactivate the item; past sales keep their notes."""
    MenuService(db).deactivate_item(vendor.id, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
