from sqlalchemy import String, JSON
from sqlalchemy.orm import Mapped, mapped_column
from crud_engine.db.session import Base
from crud_engine.models.common import IntIdMixin, TimestampMixin

class AuditLog(Base, IntIdMixin, TimestampMixin):
    __tablename__ = "crud_audit_log"
    actor: Mapped[str | None] = mapped_column(String(120), nullable=True)
    entity: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(80), nullable=False)
    action: Mapped[str] = mapped_column(String(30), nullable=False)
    diff: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
