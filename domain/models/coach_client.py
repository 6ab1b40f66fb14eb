"""
Coach-client link: which coach looks after which client. A client has at most
one coach; only accepted links grant access to the client's data.
"""

from sqlalchemy import Column, Integer, Text, TIMESTAMP
from sqlalchemy.sql import func

from domain.models.database import Base


class CoachClient(Base):
    """Coaching relationship between two identity-provider uids"""

    __tablename__ = "coach_clients"

    STATUS_PENDING = "pending"
    STATUS_ACCEPTED = "accepted"

    id = Column(Integer, primary_key=True, autoincrement=True)
    coach_id = Column(Text, nullable=False, index=True)
    client_id = Column(Text, unique=True, nullable=False, index=True)
    status = Column(Text, nullable=False, default=STATUS_PENDING)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
