from __future__ import annotations
"""Business logic for listing and deleting objects in an S3 bucket."""
import logging
from typing import Callable

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .models import FileObject, ListingPage

LOGGER = logging.getLogger(__name__)

MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class GalleryError(RuntimeError):
    """Base class for recoverable gallery backend failures."""


class ListingFetchError(GalleryError):
    """Raised when a listing page cannot be fetched."""


class DeleteError(GalleryError):
    """Raised when the backend refuses or fails to delete an object."""


class S3GalleryService:
    """Encapsulates S3 listing logic independent of any UI technology."""

    def __init__(self, client_factory: Callable[..., object] | None = None):
        self._client_factory = client_factory or boto3.client

    def list_page(
        self,
        *,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        bucket_name: str,
        page_size: int,
        cursor: str | None = None,
    ) -> ListingPage:
        """Fetch a single page of the bucket listing.

        ``cursor`` is the opaque continuation token from a previous page, or
        ``None`` for the first page. ``page_size`` is only a hint; the backend
        may return fewer entries.

        Raises:
            ListingFetchError: when the backend call fails.
        """
        if page_size <= 0:
            raise ValueError("page_size must be greater than zero")

        list_params = {"Bucket": bucket_name, "MaxKeys": page_size}
        if cursor:
            list_params["ContinuationToken"] = cursor

        LOGGER.debug("Listing bucket '%s' (cursor=%r, max_keys=%d)", bucket_name, cursor, page_size)
        try:
            client = self._create_client(endpoint_url, access_key, secret_key)
            response = client.list_objects_v2(**list_params)
        except (ClientError, BotoCoreError) as exc:
            raise ListingFetchError(str(exc)) from exc

        objects = [
            FileObject(
                key=entry["Key"],
                size=entry.get("Size"),
                last_modified=entry.get("LastModified"),
                etag=entry.get("ETag"),
            )
            for entry in response.get("Contents", [])
            if entry.get("Key")
        ]
        is_truncated = bool(response.get("IsTruncated", False))
        next_token = response.get("NextContinuationToken") or None
        if is_truncated and not next_token:
            LOGGER.warning("Bucket '%s' reported a truncated page without a continuation token", bucket_name)
        return ListingPage(objects=objects, is_truncated=is_truncated, next_token=next_token)

    def delete_object(
        self,
        *,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        bucket_name: str,
        key: str,
    ) -> None:
        """Delete an object from the target bucket.

        Deleting a key that no longer exists is not an error.

        Raises:
            DeleteError: when the backend call fails.
        """
        try:
            client = self._create_client(endpoint_url, access_key, secret_key)
            client.delete_object(Bucket=bucket_name, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in MISSING_OBJECT_CODES:
                LOGGER.debug("Object '%s' already absent from '%s'", key, bucket_name)
                return
            raise DeleteError(str(exc)) from exc
        except BotoCoreError as exc:
            raise DeleteError(str(exc)) from exc

    def generate_presigned_url(
        self,
        *,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        bucket_name: str,
        key: str,
        expires_in: int = 3600,
    ) -> str:
        """Create a presigned GET URL for previewing an object."""

        if expires_in <= 0:
            raise ValueError("expires_in must be greater than zero")
        client = self._create_client(endpoint_url, access_key, secret_key)
        return client.generate_presigned_url(
            "get_object",
            Params={"Bucket": bucket_name, "Key": key},
            ExpiresIn=expires_in,
        )

    def _create_client(self, endpoint_url: str, access_key: str, secret_key: str):
        config = Config(signature_version="s3v4")
        return self._client_factory(
            "s3",
            endpoint_url=endpoint_url or None,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            config=config,
        )
