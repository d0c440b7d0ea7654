"""
API Endpoints für Kulturen
"""
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, status
from sqlalchemy import select, func

from farmflow.api.deps import DBSession, CurrentUser, Pagination
from farmflow.core.exceptions import NotFoundError
from farmflow.database import unit_of_work
from farmflow.models.crop import Crop
from farmflow.models.enums import CropCategory
from farmflow.schemas.crop import CropCreate, CropUpdate, CropResponse, CropListResponse
from farmflow.services.crop_parameters import CropParameters

router = APIRouter()


def _get_crop(db, tenant_id: UUID, crop_id: UUID) -> Crop:
    crop = db.execute(
        select(Crop).where(Crop.id == crop_id, Crop.tenant_id == tenant_id)
    ).scalar_one_or_none()
    if not crop:
        raise NotFoundError("Kultur", crop_id)
    return crop


@router.get("", response_model=CropListResponse)
async def list_crops(
    db: DBSession,
    user: CurrentUser,
    pagination: Pagination,
    category: Optional[CropCategory] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
):
    """
    Liste aller Kulturen.

    - **category**: Optional - Microgreens oder Pilze
    - **search**: Optional - Suche nach Name
    """
    query = select(Crop).where(Crop.tenant_id == user["tenant_id"])
    if category:
        query = query.where(Crop.category == category)
    if is_active is not None:
        query = query.where(Crop.is_active == is_active)
    if search:
        query = query.where(Crop.name.ilike(f"%{search}%"))

    total = db.execute(select(func.count()).select_from(query.subquery())).scalar() or 0
    crops = db.execute(
        query.order_by(Crop.name).offset(pagination.offset).limit(pagination.page_size)
    ).scalars().all()

    return CropListResponse(
        items=[CropResponse.model_validate(c) for c in crops],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get("/{crop_id}", response_model=CropResponse)
async def get_crop(crop_id: UUID, db: DBSession, user: CurrentUser):
    return CropResponse.model_validate(_get_crop(db, user["tenant_id"], crop_id))


@router.post("", response_model=CropResponse, status_code=status.HTTP_201_CREATED)
async def create_crop(data: CropCreate, db: DBSession, user: CurrentUser):
    """
    Neue Kultur anlegen.

    Die Wachstumsparameter werden vor dem Speichern geprüft
    (z.B. Blackout nicht länger als Wachstumsdauer).
    """
    crop = Crop(tenant_id=user["tenant_id"], **data.model_dump())
    CropParameters.from_crop(crop)
    with unit_of_work(db):
        db.add(crop)
    db.refresh(crop)
    return CropResponse.model_validate(crop)


@router.patch("/{crop_id}", response_model=CropResponse)
async def update_crop(crop_id: UUID, data: CropUpdate, db: DBSession, user: CurrentUser):
    """
    Kultur aktualisieren.
    Bereits geplante Aufgaben bleiben unverändert.
    """
    crop = _get_crop(db, user["tenant_id"], crop_id)
    with unit_of_work(db):
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(crop, field, value)
        CropParameters.from_crop(crop)
    db.refresh(crop)
    return CropResponse.model_validate(crop)


@router.delete("/{crop_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_crop(crop_id: UUID, db: DBSession, user: CurrentUser):
    """
    Kultur deaktivieren (Soft Delete).
    Bestehende Bestellungen und Chargen behalten ihre Referenz.
    """
    crop = _get_crop(db, user["tenant_id"], crop_id)
    with unit_of_work(db):
        crop.is_active = False
