"""
RefreshSession model: the one current refresh grant of a principal.
Fields:
- principal (unique) - login the session belongs to
- refresh_token (unique) - the exact token string handed to the client
- expires_at - copied from the mint of that token
"""
from sqlalchemy import Column, String, DateTime
from models.base_model import BaseModel, Base


class RefreshSession(BaseModel, Base):
    __tablename__ = "refresh_sessions"

    principal = Column(String(255), nullable=False, unique=True, index=True)
    refresh_token = Column(String(1024), nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<RefreshSession principal={self.principal} expires_at={self.expires_at}>"
