from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class ManifestIcon(BaseModel):
    model_config = ConfigDict(extra="ignore")

    src: Optional[str] = None
    sizes: Optional[str] = None
    type: Optional[str] = None


class Manifest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    icons: List[ManifestIcon] = []


class CachedFavicon(BaseModel):
    data: bytes
    content_type: str


class FaviconSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    domain: str
    content_type: str
    created_at: datetime


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of fetching one candidate URL. Never persisted."""
    url: str
    data: bytes = b""
    content_type: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class IconDiscovery:
    """Extra candidates advertised by a site's manifest or markup."""
    source: str
    urls: List[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.urls)


@dataclass(frozen=True)
class NormalizedImage:
    data: bytes
    resized: bool = False
