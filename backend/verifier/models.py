# verifier/models.py
from sqlmodel import SQLModel, Field
from datetime import datetime

class CachedResponse(SQLModel, table=True):
    __tablename__ = "cached_response"

    url: str = Field(primary_key=True)
    payload: str  # FactCheckResponse JSON, camelCase keys
    created_at: datetime = Field(default_factory=datetime.utcnow)
