from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from churchcms.auth.deps import get_current_user, require_roles
from churchcms.core.db import get_db
from churchcms.models.role import Role
from churchcms.models.service import Service
from churchcms.models.user import User
from churchcms.schemas.service import ServiceCreate, ServiceOut, ServiceUpdate
from churchcms.services.attendance import get_service_or_404

router = APIRouter(prefix="/services", tags=["services"])

MANAGE_ROLES = (Role.ADMIN, Role.GROUP_PASTOR)


@router.get("", response_model=list[ServiceOut])
@router.get("/", response_model=list[ServiceOut], include_in_schema=False)
def list_services(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
) -> list[ServiceOut]:
    services = db.query(Service).order_by(Service.date.desc(), Service.id.desc()).all()
    return [ServiceOut.from_orm(service) for service in services]


@router.get("/{service_id}", response_model=ServiceOut)
def get_service(
    service_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
) -> ServiceOut:
    return ServiceOut.from_orm(get_service_or_404(db, service_id))


@router.post("", response_model=ServiceOut, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=ServiceOut, status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_service(
    payload: ServiceCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*MANAGE_ROLES)),
) -> ServiceOut:
    service = Service(
        name=payload.name.strip(),
        date=payload.date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        active=payload.active,
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    return ServiceOut.from_orm(service)


@router.patch("/{service_id}", response_model=ServiceOut)
def update_service(
    service_id: int,
    payload: ServiceUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*MANAGE_ROLES)),
) -> ServiceOut:
    service = get_service_or_404(db, service_id)
    changes = payload.dict(exclude_unset=True)
    for field, value in changes.items():
        if value is None:
            continue
        setattr(service, field, value.strip() if field == "name" else value)

    if service.end_time <= service.start_time:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="End time must be after start time")

    db.commit()
    db.refresh(service)
    return ServiceOut.from_orm(service)
