# verifier/storage.py (durable URL -> response memo)
import logging
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from .models import CachedResponse
from .schema import FactCheckResponse

logger = logging.getLogger(__name__)


def make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=False, **kwargs)
    return create_engine(url, echo=False)


class DurableCache:
    """
    Permanent memo table from request URL to the full response.

    Entries never expire. A repeat ``get`` returns the stored JSON verbatim,
    so confidence and citations computed on the first run are preserved.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        SQLModel.metadata.create_all(engine)

    @classmethod
    def from_url(cls, url: str) -> "DurableCache":
        return cls(make_engine(url))

    def get_raw(self, url: str) -> Optional[str]:
        with Session(self.engine) as session:
            row = session.get(CachedResponse, url)
            return row.payload if row else None

    def get(self, url: str) -> Optional[FactCheckResponse]:
        payload = self.get_raw(url)
        if payload is None:
            return None
        logger.info(f"Durable cache hit for url: {url}")
        return FactCheckResponse.model_validate_json(payload)

    def set(self, url: str, value: FactCheckResponse):
        with Session(self.engine) as session:
            row = session.get(CachedResponse, url)
            if row is None:
                row = CachedResponse(url=url, payload=value.to_json())
            else:
                row.payload = value.to_json()
            session.add(row)
            session.commit()
        logger.info(f"Stored durable response for url: {url}")
