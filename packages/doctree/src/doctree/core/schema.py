"""Database schema for tree rows."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class TreeNodeRow(Base):
    """One folder, page or asset.

    `folder_path` holds the internal path of the parent folder ("" for root)
    and `file_name` the node's own external name.
    """

    __tablename__ = "tree"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    site_id: Mapped[str] = mapped_column(String(64), nullable=False)
    folder_path: Mapped[str] = mapped_column(String(2048), nullable=False, default="")
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        UniqueConstraint("site_id", "folder_path", "file_name", name="uq_tree_site_path_name"),
        Index("ix_tree_site_folder_path", "site_id", "folder_path"),
    )

    def __repr__(self) -> str:
        return f"<TreeNodeRow(id={self.id}, folder_path={self.folder_path!r}, file_name={self.file_name!r})>"
