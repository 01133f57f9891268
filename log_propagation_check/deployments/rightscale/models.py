"""Pydantic models for RightScale API 1.5 responses."""

from collections.abc import Sequence

from pydantic import BaseModel, Field


class Link(BaseModel):
    """A related resource reference."""

    rel: str
    href: str


class Instance(BaseModel):
    """The running instance behind a server."""

    state: str | None = None
    private_ip_addresses: Sequence[str] = Field(default_factory=list)
    public_ip_addresses: Sequence[str] = Field(default_factory=list)
    links: Sequence[Link] = Field(default_factory=list)


class Server(BaseModel):
    """A server as returned with view=instance_detail."""

    name: str
    state: str
    links: Sequence[Link]
    current_instance: Instance | None = None
    next_instance: Instance | None = None

    def link(self, rel: str) -> str | None:
        """Return the href of the link with the given relation."""
        for link in self.links:
            if link.rel == rel:
                return link.href
        return None

    @property
    def server_id(self) -> str:
        """Numeric server identifier taken from the self link."""
        href = self.link("self")
        if href is None:
            raise ValueError(f"Server '{self.name}' has no self link")
        return href.rstrip("/").rsplit("/", 1)[-1]


class MonitoringMetric(BaseModel):
    """One monitoring metric exposed by an instance."""

    plugin: str
    view: str


class AccessToken(BaseModel):
    """Response of the OAuth2 token endpoint."""

    access_token: str
    expires_in: int
