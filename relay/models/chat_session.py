import uuid

from sqlalchemy import Column, DateTime, String, Text, func

from relay.database import Base


class ChatSession(Base):
    __tablename__ = "chat_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    identity = Column(Text, nullable=False, unique=True, index=True)  # phone number, no "whatsapp:" prefix
    access_token = Column(Text)
    conversation_id = Column(Text)
    token_last_refreshed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
