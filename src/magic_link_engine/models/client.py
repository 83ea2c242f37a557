import uuid
from datetime import UTC, datetime

from sqlalchemy import JSON, Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from magic_link_engine.core.postgres import Base


class ClientORM(Base):
    """
    A registered OAuth2/OIDC relying party.

    ``redirect_uris`` holds the exact URIs (or ``*``-suffixed prefixes) the
    client may be redirected to. ``base_url`` is the client's default landing
    page, used when a requested redirect URI is not acceptable.
    """

    __tablename__ = "oauth_clients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    client_id: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    redirect_uris: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    base_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Client client_id={self.client_id}>"
