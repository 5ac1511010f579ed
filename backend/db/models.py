import uuid

from sqlalchemy import (
    Column,
    Text,
    DateTime,
    Index,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from db.database import Base


class BlockedContent(Base):
    __tablename__ = "blocked_content"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
        default=uuid.uuid4,
    )
    text = Column(Text, nullable=False)
    url = Column(Text, nullable=False)
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("idx_blocked_content_created", "created_at"),)
