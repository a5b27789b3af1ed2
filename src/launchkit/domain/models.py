"""Domain models: catalog entries, installed records and releases."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any


@dataclass(slots=True, frozen=True)
class RepoRef:
    """Reference to a GitHub repository.

    Attributes:
        owner: Repository owner
        repo: Repository name

    """

    owner: str
    repo: str

    @classmethod
    def parse(cls, value: str) -> RepoRef:
        """Parse an ``owner/repo`` string.

        Args:
            value: Repository reference such as ``"Smallzoamz/medicop"``

        Returns:
            RepoRef instance

        Raises:
            ValueError: If the value is not of the form owner/repo

        """
        owner, sep, repo = value.strip().strip("/").partition("/")
        if not sep or not owner or not repo or "/" in repo:
            msg = f"Invalid repository reference: {value!r}"
            raise ValueError(msg)
        return cls(owner=owner, repo=repo)

    def __str__(self) -> str:
        """Return the ``owner/repo`` form."""
        return f"{self.owner}/{self.repo}"


@dataclass(slots=True, frozen=True)
class ReleaseInfo:
    """Latest published release of a repository.

    Attributes:
        version: Version with any leading ``v`` removed
        download_url: URL of the selected asset (None if no asset fits)
        asset_name: File name of the selected asset
        published_at: ISO 8601 publish timestamp
        notes: Release body text

    """

    version: str
    download_url: str | None
    asset_name: str | None
    published_at: str | None = None
    notes: str | None = None


@dataclass(slots=True, frozen=True)
class CatalogEntry:
    """One installable application from the catalog.

    Immutable; ``with_release`` is the only sanctioned way to change the
    version or download source after the catalog is loaded.
    """

    id: str
    name: str
    version: str
    description: str = ""
    icon: str | None = None
    download_url: str | None = None
    repo: RepoRef | None = None
    size_hint: str | None = None
    category: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CatalogEntry:
        """Create an entry from a catalog JSON object.

        Args:
            data: Object from the catalog's ``apps`` array

        Returns:
            CatalogEntry instance

        Raises:
            ValueError: If ``id`` or ``name`` is missing

        """
        app_id = str(data.get("id") or "").strip()
        name = str(data.get("name") or "").strip()
        if not app_id or not name:
            msg = f"Catalog entry requires 'id' and 'name': {data!r}"
            raise ValueError(msg)

        repo_value = data.get("githubRepo") or data.get("repo")
        repo = RepoRef.parse(repo_value) if repo_value else None

        return cls(
            id=app_id,
            name=name,
            version=str(data.get("version") or ""),
            description=str(data.get("description") or ""),
            icon=data.get("icon"),
            download_url=data.get("downloadUrl") or None,
            repo=repo,
            size_hint=data.get("size"),
            category=data.get("category"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the catalog JSON shape."""
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "icon": self.icon,
            "downloadUrl": self.download_url,
            "githubRepo": str(self.repo) if self.repo else None,
            "size": self.size_hint,
            "category": self.category,
        }

    def with_release(self, release: ReleaseInfo) -> CatalogEntry:
        """Return a copy synced to an upstream release.

        The download URL is only replaced when the release carries one.
        """
        return replace(
            self,
            version=release.version or self.version,
            download_url=release.download_url or self.download_url,
        )


@dataclass(slots=True, frozen=True)
class InstalledAppRecord:
    """Ledger record for one installed application.

    Attributes:
        id: App id, matches ``CatalogEntry.id``
        name: Display name at install time
        version: Installed version
        installed_at: ISO 8601 timestamp of the first install
        path: Launchable entry point, or the install root when none found
        updated_at: ISO 8601 timestamp of the last reinstall/update
        install_root: Directory owned by this app

    """

    id: str
    name: str
    version: str
    installed_at: str
    path: str
    updated_at: str | None = None
    install_root: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InstalledAppRecord:
        """Create a record from its persisted camelCase form."""
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            version=str(data.get("version") or ""),
            installed_at=str(data.get("installedAt") or ""),
            path=str(data.get("path") or ""),
            updated_at=data.get("updatedAt"),
            install_root=data.get("installRoot"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted camelCase form."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "installedAt": self.installed_at,
            "path": self.path,
        }
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at
        if self.install_root is not None:
            data["installRoot"] = self.install_root
        return data


@dataclass(slots=True, frozen=True)
class UpdateInfo:
    """An installed app whose catalog version differs."""

    app_id: str
    name: str
    current_version: str
    new_version: str
