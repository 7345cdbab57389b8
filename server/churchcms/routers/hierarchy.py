from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from churchcms.auth.deps import get_current_user
from churchcms.core.db import get_db
from churchcms.models.hierarchy import Cell, Group, Pcf
from churchcms.models.user import User
from churchcms.schemas.hierarchy import CellOut, ChurchOut, GroupOut, HierarchyResponse, PcfOut
from churchcms.services.directory import get_church

router = APIRouter(prefix="/hierarchy", tags=["hierarchy"])


@router.get("", response_model=HierarchyResponse)
@router.get("/", response_model=HierarchyResponse, include_in_schema=False)
def get_hierarchy(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
) -> HierarchyResponse:
    church = get_church(db)
    if church is None:
        return HierarchyResponse()
    return HierarchyResponse(
        church=ChurchOut.from_orm(church),
        groups=[GroupOut.from_orm(group) for group in db.query(Group).order_by(Group.name.asc(), Group.id.asc())],
        pcfs=[PcfOut.from_orm(pcf) for pcf in db.query(Pcf).order_by(Pcf.name.asc(), Pcf.id.asc())],
        cells=[CellOut.from_orm(cell) for cell in db.query(Cell).order_by(Cell.name.asc(), Cell.id.asc())],
    )
