from __future__ import annotations
"""Controller layer binding the gallery service to the active connection."""

from typing import Callable

from .models import ListingPage
from .profiles import ConnectionProfile, ProfileStorage
from .services import S3GalleryService
from .ui_utils import make_url_resolver


class NotConnectedError(RuntimeError):
    """Raised when an S3 operation is attempted before connecting."""


class GalleryController:
    """Coordinates user actions with the :class:`S3GalleryService`."""

    def __init__(
        self,
        service: S3GalleryService | None = None,
        storage: ProfileStorage | None = None,
    ):
        self._service = service or S3GalleryService()
        self._storage = storage or ProfileStorage()
        self._connection_params: dict[str, str] | None = None
        self._url_resolver: Callable[[str], str] | None = None
        self._profiles: list[ConnectionProfile] = self._storage.load()
        self._selected_profile: str | None = None

    @property
    def is_connected(self) -> bool:
        return self._connection_params is not None

    @property
    def selected_profile(self) -> str | None:
        return self._selected_profile

    @property
    def bucket_name(self) -> str | None:
        if not self._connection_params:
            return None
        return self._connection_params["bucket_name"]

    def list_profiles(self) -> list[ConnectionProfile]:
        return list(self._profiles)

    def save_profile(self, profile: ConnectionProfile, *, original_name: str | None = None) -> None:
        if original_name and original_name != profile.name:
            self._profiles = [p for p in self._profiles if p.name != original_name]
        self._upsert_profile(profile)
        self._persist_profiles()

    def delete_profile(self, name: str) -> None:
        before = len(self._profiles)
        self._profiles = [p for p in self._profiles if p.name != name]
        if len(self._profiles) == before:
            raise ValueError(f"Profile '{name}' does not exist")
        if self._selected_profile == name:
            self._selected_profile = None
        self._persist_profiles()

    def get_profile(self, name: str) -> ConnectionProfile:
        for profile in self._profiles:
            if profile.name == name:
                return profile
        raise ValueError(f"Profile '{name}' does not exist")

    def connect_with_profile(self, name: str) -> None:
        profile = self.get_profile(name)
        self.connect(
            endpoint_url=profile.endpoint_url,
            access_key=profile.access_key,
            secret_key=profile.secret_key,
            bucket_name=profile.bucket_name,
            public_url=profile.public_url,
        )
        self._selected_profile = name

    def connect(
        self,
        *,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        bucket_name: str,
        public_url: str = "",
    ) -> None:
        if not bucket_name:
            raise ValueError("A bucket name is required")
        self._url_resolver = make_url_resolver(public_url) if public_url.strip() else None
        self._connection_params = {
            "endpoint_url": endpoint_url,
            "access_key": access_key,
            "secret_key": secret_key,
            "bucket_name": bucket_name,
        }

    def disconnect(self) -> None:
        self._connection_params = None
        self._url_resolver = None
        self._selected_profile = None

    def list_page(self, cursor: str | None, page_size: int) -> ListingPage:
        params = self._require_connection()
        return self._service.list_page(cursor=cursor, page_size=page_size, **params)

    def delete_object(self, key: str) -> None:
        params = self._require_connection()
        self._service.delete_object(key=key, **params)

    def object_url(self, key: str) -> str:
        params = self._require_connection()
        if self._url_resolver is not None:
            return self._url_resolver(key)
        return self._service.generate_presigned_url(key=key, **params)

    def _require_connection(self) -> dict[str, str]:
        if not self._connection_params:
            raise NotConnectedError("Not connected to S3")
        return self._connection_params

    def _upsert_profile(self, profile: ConnectionProfile) -> None:
        for idx, existing in enumerate(self._profiles):
            if existing.name == profile.name:
                self._profiles[idx] = profile
                break
        else:
            self._profiles.append(profile)

    def _persist_profiles(self) -> None:
        self._storage.save(self._profiles)
