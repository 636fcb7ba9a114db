"""Registry data shapes (source of truth).

Every value flowing through the router is one of the pydantic models below.
They mirror the JSON payloads of Open VSX style registries (``-/search`` and
``-/query`` endpoints), keep the wire names as aliases and accept unknown keys
so raw registry payloads survive a round trip untouched.

Objects
~~~~~~~
``ExtensionLike``
    Minimal package identity ``{namespace, name, version?}``. Frozen; extra
    fields allowed. ``id`` is ``"<namespace>.<name>"``.

``SearchEntry`` / ``ExtensionRaw``
    ``ExtensionLike`` subclasses returned by ``search`` and ``query``.

``SearchOptions`` / ``QueryOptions``
    Request parameters. Field names are snake_case; aliases carry the wire
    camelCase names and both spellings are accepted on input.

``SearchResult`` / ``QueryResult``
    Read-only pages returned by registries and rebuilt by the router.

Helpers
~~~~~~~
``extension_id(ext, with_version=False)`` works on models, mappings and any
object exposing ``namespace``/``name``/``version`` attributes.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "ExtensionLike",
    "SearchEntry",
    "ExtensionRaw",
    "SearchOptions",
    "QueryOptions",
    "SearchResult",
    "QueryResult",
    "extension_id",
]


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_wire(self) -> dict:
        """Return the payload with wire names, dropping unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ExtensionLike(_WireModel):
    """Identity of an extension: namespace, name and optional version."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    namespace: str
    name: str
    version: Optional[str] = None

    @property
    def id(self) -> str:
        return f"{self.namespace}.{self.name}"


class SearchEntry(ExtensionLike):
    """Extension as listed by a registry search."""


class ExtensionRaw(ExtensionLike):
    """Extension as returned by a registry query."""


class SearchOptions(_WireModel):
    query: Optional[str] = None
    category: Optional[str] = None
    size: Optional[int] = None
    offset: Optional[int] = None
    sort_order: Optional[str] = Field(default=None, alias="sortOrder")
    sort_by: Optional[str] = Field(default=None, alias="sortBy")
    include_all_versions: Optional[bool] = Field(default=None, alias="includeAllVersions")
    target_platform: Optional[str] = Field(default=None, alias="targetPlatform")


class QueryOptions(_WireModel):
    namespace_name: Optional[str] = Field(default=None, alias="namespaceName")
    extension_name: Optional[str] = Field(default=None, alias="extensionName")
    extension_version: Optional[str] = Field(default=None, alias="extensionVersion")
    extension_id: Optional[str] = Field(default=None, alias="extensionId")
    extension_uuid: Optional[str] = Field(default=None, alias="extensionUuid")
    namespace_uuid: Optional[str] = Field(default=None, alias="namespaceUuid")
    include_all_versions: Optional[bool] = Field(default=None, alias="includeAllVersions")
    target_platform: Optional[str] = Field(default=None, alias="targetPlatform")
    size: Optional[int] = None
    offset: Optional[int] = None


class SearchResult(_WireModel):
    offset: int = 0
    extensions: List[SearchEntry] = Field(default_factory=list)


class QueryResult(_WireModel):
    offset: int = 0
    total_size: int = Field(default=0, alias="totalSize")
    extensions: List[ExtensionRaw] = Field(default_factory=list)


def extension_id(extension: Any, *, with_version: bool = False) -> str:
    """Return ``"<namespace>.<name>"``, optionally suffixed ``"@<version>"``."""
    if isinstance(extension, Mapping):
        namespace = extension["namespace"]
        name = extension["name"]
        version = extension.get("version")
    else:
        namespace = extension.namespace
        name = extension.name
        version = getattr(extension, "version", None)
    ident = f"{namespace}.{name}"
    if with_version and version:
        return f"{ident}@{version}"
    return ident
