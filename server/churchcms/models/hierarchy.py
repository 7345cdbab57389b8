from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from churchcms.core.db import Base


class Church(Base):
    __tablename__ = "churches"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    address = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    groups = relationship("Group", back_populates="church", order_by="Group.id")


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    church_id = Column(Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False, index=True)
    leader_id = Column(String(36), nullable=True, index=True)

    church = relationship("Church", back_populates="groups")
    pcfs = relationship("Pcf", back_populates="group", order_by="Pcf.id")


class Pcf(Base):
    __tablename__ = "pcfs"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    leader_id = Column(String(36), nullable=True, index=True)

    group = relationship("Group", back_populates="pcfs")
    cells = relationship("Cell", back_populates="pcf", order_by="Cell.id")


class Cell(Base):
    __tablename__ = "cells"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    pcf_id = Column(Integer, ForeignKey("pcfs.id", ondelete="CASCADE"), nullable=False, index=True)
    leader_id = Column(String(36), nullable=True, index=True)

    pcf = relationship("Pcf", back_populates="cells")
    members = relationship("Member", back_populates="cell")
