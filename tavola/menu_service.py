"""Menu business logic: dishes and their images in object storage."""

from __future__ import annotations

import dataclasses
import posixpath
import uuid
from datetime import timedelta
from typing import Protocol
from urllib.parse import urlsplit, urlunsplit

from tavola.errors import InternalError
from tavola.menu_models import ListDishFilter, MenuDish, UpdateDishRequest

PUBLIC_HOST = "localhost:9000"
PUBLIC_SCHEME = "http"

_UPDATABLE_FIELDS = (
    "name",
    "description",
    "price",
    "category_id",
    "cooking_time_min",
    "image_url",
    "is_available",
    "calories",
)


class DishRepository(Protocol):
    """Persistent storage for dishes."""

    def create(self, dish: MenuDish) -> None: ...

    def get_by_id(self, dish_id: uuid.UUID) -> MenuDish: ...

    def get_by_filter(self, filter: ListDishFilter) -> list[MenuDish]: ...

    def update(self, dish: MenuDish) -> None: ...

    def delete(self, dish_id: uuid.UUID) -> None: ...


class ImageStorage(Protocol):
    """An S3-compatible object store able to sign upload and download URLs."""

    def bucket_exists(self, bucket_name: str) -> bool: ...

    def presigned_put_object(
        self, bucket_name: str, object_name: str, expiry: timedelta
    ) -> str: ...

    def presigned_get_object(
        self, bucket_name: str, object_name: str, expiry: timedelta
    ) -> str: ...


class _ImageURLProvider(Protocol):
    def get_download_url(self, object_key: str) -> str: ...


def _public_url(url: str) -> str:
    parts = urlsplit(url)
    userinfo = parts.netloc.rpartition("@")[0]
    netloc = f"{userinfo}@{PUBLIC_HOST}" if userinfo else PUBLIC_HOST
    return urlunsplit((PUBLIC_SCHEME, netloc, parts.path, parts.query, parts.fragment))


class ImageService:
    """Issues signed URLs for uploading and downloading dish images."""

    def __init__(self, storage: ImageStorage, bucket_name: str, expiry: timedelta) -> None:
        self.storage = storage
        self.bucket_name = bucket_name
        self.expiry = expiry

    def _ensure_bucket(self) -> None:
        try:
            exists = self.storage.bucket_exists(self.bucket_name)
        except Exception as exc:
            raise InternalError(
                f"internal error failed to check bucket existence: {exc}"
            ) from exc
        if not exists:
            raise InternalError(f'internal error bucket "{self.bucket_name}" does not exist')

    def create_url(self, filename: str, content_type: str) -> tuple[str, str]:
        """Return a signed upload URL and the object key it will store under."""
        object_key = posixpath.normpath(posixpath.join("uploads", f"{uuid.uuid4()}-{filename}"))
        self._ensure_bucket()
        try:
            signed = self.storage.presigned_put_object(self.bucket_name, object_key, self.expiry)
        except Exception as exc:
            raise InternalError(
                f"internal error failed to generate presigned PUT URL: {exc}"
            ) from exc
        return _public_url(signed), object_key

    def get_download_url(self, object_key: str) -> str:
        """Return a signed download URL for a stored image."""
        self._ensure_bucket()
        try:
            signed = self.storage.presigned_get_object(self.bucket_name, object_key, self.expiry)
        except Exception as exc:
            raise InternalError(
                f"internal error failed to generate presigned GET URL: {exc}"
            ) from exc
        return _public_url(signed)


class DishService:
    """Creates, reads, updates and lists dishes, resolving image keys to URLs."""

    def __init__(self, repo: DishRepository, image_provider: _ImageURLProvider) -> None:
        self.repo = repo
        self.image_provider = image_provider

    def _resolve_image(self, dish: MenuDish) -> MenuDish:
        if dish.image_url:
            dish.image_url = self.image_provider.get_download_url(dish.image_url)
        return dish

    def create(self, dish: MenuDish) -> MenuDish:
        """Save a new dish; its image key is replaced by a download URL."""
        download_url = ""
        if dish.image_url:
            download_url = self.image_provider.get_download_url(dish.image_url)
        self.repo.create(dish)
        dish.image_url = download_url
        return dish

    def get(self, dish_id: uuid.UUID) -> MenuDish:
        return self._resolve_image(self.repo.get_by_id(dish_id))

    def update(self, request: UpdateDishRequest) -> MenuDish:
        """Apply the fields set in the request to the stored dish."""
        existing = self.repo.get_by_id(request.id)
        for name in _UPDATABLE_FIELDS:
            value = getattr(request, name)
            if value is not None:
                setattr(existing, name, value)
        self.repo.update(existing)
        return self._resolve_image(existing)

    def list(self, filter: ListDishFilter) -> list[MenuDish]:
        dishes = self.repo.get_by_filter(filter)
        return [self._resolve_image(dataclasses.replace(dish)) for dish in dishes]