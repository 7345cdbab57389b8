"""Church, group, PCF and cell administration."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from churchcms.auth.deps import get_current_user, require_admin
from churchcms.core.db import get_db
from churchcms.models.hierarchy import Cell, Group, Pcf
from churchcms.models.role import Level
from churchcms.models.user import User
from churchcms.schemas.hierarchy import (
    CellAssignmentOut,
    CellCreate,
    CellOut,
    CellUpdate,
    ChurchCreate,
    ChurchOut,
    GroupAssignmentOut,
    GroupCreate,
    GroupOut,
    GroupUpdate,
    PcfAssignmentOut,
    PcfCreate,
    PcfOut,
    PcfUpdate,
)
from churchcms.services.authorization import authorize_change, authorize_create
from churchcms.services.directory import ensure_church, get_church
from churchcms.services.leadership import (
    LeaderAssignment,
    NoLeader,
    assign_leader,
    leader_ref_from_payload,
    release_leader,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["structure"])


def _get_or_404(db: Session, model, node_id: int, label: str):
    node = db.get(model, node_id)
    if not node:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return node


def _apply_leader(db: Session, actor: User, node, level: Level, payload, *, creating: bool) -> LeaderAssignment:
    ref = leader_ref_from_payload(payload)
    if ref is None:
        if not creating:
            return LeaderAssignment(leader=None, changed=False)
        ref = NoLeader()
    return assign_leader(db, actor, node, level, ref)


@router.post("/church", response_model=ChurchOut)
def create_church(
    payload: ChurchCreate,
    response: Response,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> ChurchOut:
    existing = get_church(db)
    if existing is not None:
        return ChurchOut.from_orm(existing)
    church = ensure_church(db, name=payload.name.strip(), address=payload.address)
    db.commit()
    response.status_code = status.HTTP_201_CREATED
    return ChurchOut.from_orm(church)


@router.post("/groups", response_model=GroupAssignmentOut, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: GroupCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> GroupAssignmentOut:
    authorize_create(db, current_user, Level.GROUP, None)
    church = ensure_church(db)
    group = Group(name=payload.name.strip(), church_id=church.id)
    db.add(group)
    db.flush()

    assignment = _apply_leader(db, current_user, group, Level.GROUP, payload, creating=True)
    db.commit()
    logger.info("group_created", extra={"group_id": group.id, "actor_id": current_user.id})
    return GroupAssignmentOut(**GroupOut.from_orm(group).dict(), new_leader_credentials=assignment.credentials)


@router.patch("/groups/{group_id}", response_model=GroupAssignmentOut)
def update_group(
    group_id: int,
    payload: GroupUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> GroupAssignmentOut:
    group = _get_or_404(db, Group, group_id, "Group")
    authorize_change(db, current_user, Level.GROUP, group.id)
    if payload.name is not None:
        group.name = payload.name.strip()

    assignment = _apply_leader(db, current_user, group, Level.GROUP, payload, creating=False)
    db.commit()
    return GroupAssignmentOut(**GroupOut.from_orm(group).dict(), new_leader_credentials=assignment.credentials)


@router.delete("/groups/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_group(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    group = _get_or_404(db, Group, group_id, "Group")
    authorize_change(db, current_user, Level.GROUP, group.id)
    if group.pcfs:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Remove the PCFs of this group before deleting it")

    release_leader(db, group, Level.GROUP)
    db.delete(group)
    db.commit()
    logger.info("group_deleted", extra={"group_id": group_id, "actor_id": current_user.id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/pcfs", response_model=PcfAssignmentOut, status_code=status.HTTP_201_CREATED)
def create_pcf(
    payload: PcfCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PcfAssignmentOut:
    group = _get_or_404(db, Group, payload.group_id, "Group")
    authorize_create(db, current_user, Level.PCF, group.id)
    pcf = Pcf(name=payload.name.strip(), group_id=group.id)
    db.add(pcf)
    db.flush()

    assignment = _apply_leader(db, current_user, pcf, Level.PCF, payload, creating=True)
    db.commit()
    logger.info("pcf_created", extra={"pcf_id": pcf.id, "actor_id": current_user.id})
    return PcfAssignmentOut(**PcfOut.from_orm(pcf).dict(), new_leader_credentials=assignment.credentials)


@router.patch("/pcfs/{pcf_id}", response_model=PcfAssignmentOut)
def update_pcf(
    pcf_id: int,
    payload: PcfUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PcfAssignmentOut:
    pcf = _get_or_404(db, Pcf, pcf_id, "PCF")
    authorize_change(db, current_user, Level.PCF, pcf.id)
    if payload.name is not None:
        pcf.name = payload.name.strip()

    assignment = _apply_leader(db, current_user, pcf, Level.PCF, payload, creating=False)
    db.commit()
    return PcfAssignmentOut(**PcfOut.from_orm(pcf).dict(), new_leader_credentials=assignment.credentials)


@router.delete("/pcfs/{pcf_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_pcf(
    pcf_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    pcf = _get_or_404(db, Pcf, pcf_id, "PCF")
    authorize_change(db, current_user, Level.PCF, pcf.id)
    if pcf.cells:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Remove the cells of this PCF before deleting it")

    release_leader(db, pcf, Level.PCF)
    db.delete(pcf)
    db.commit()
    logger.info("pcf_deleted", extra={"pcf_id": pcf_id, "actor_id": current_user.id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/cells", response_model=CellAssignmentOut, status_code=status.HTTP_201_CREATED)
def create_cell(
    payload: CellCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CellAssignmentOut:
    pcf = _get_or_404(db, Pcf, payload.pcf_id, "PCF")
    authorize_create(db, current_user, Level.CELL, pcf.id)
    cell = Cell(name=payload.name.strip(), pcf_id=pcf.id)
    db.add(cell)
    db.flush()

    assignment = _apply_leader(db, current_user, cell, Level.CELL, payload, creating=True)
    db.commit()
    logger.info("cell_created", extra={"cell_id": cell.id, "actor_id": current_user.id})
    return CellAssignmentOut(**CellOut.from_orm(cell).dict(), new_leader_credentials=assignment.credentials)


@router.patch("/cells/{cell_id}", response_model=CellAssignmentOut)
def update_cell(
    cell_id: int,
    payload: CellUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CellAssignmentOut:
    cell = _get_or_404(db, Cell, cell_id, "Cell")
    authorize_change(db, current_user, Level.CELL, cell.id)
    if payload.name is not None:
        cell.name = payload.name.strip()

    assignment = _apply_leader(db, current_user, cell, Level.CELL, payload, creating=False)
    db.commit()
    return CellAssignmentOut(**CellOut.from_orm(cell).dict(), new_leader_credentials=assignment.credentials)


@router.delete("/cells/{cell_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_cell(
    cell_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    cell = _get_or_404(db, Cell, cell_id, "Cell")
    authorize_change(db, current_user, Level.CELL, cell.id)
    if cell.members:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Move or remove the members of this cell before deleting it")

    release_leader(db, cell, Level.CELL)
    db.delete(cell)
    db.commit()
    logger.info("cell_deleted", extra={"cell_id": cell_id, "actor_id": current_user.id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
