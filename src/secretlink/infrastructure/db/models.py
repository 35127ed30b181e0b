from typing import Any

from sqlalchemy import Column, DateTime, Index, String
from sqlalchemy.orm import declarative_base

Base: Any = declarative_base()


class TokenModel(Base):
    __tablename__ = "tokens"
    id = Column(String(64), primary_key=True)
    subject = Column(String, nullable=False)
    kind = Column(String(16), nullable=False)
    # naive UTC; converted at the repository boundary
    created_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    consumed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_tokens_subject", "subject"),
        Index("idx_tokens_expires_at", "expires_at"),
    )
