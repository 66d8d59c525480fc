"""
Nourish - Image storage.

The agent core only ever deletes meal images; uploads and presigned URLs
live with the UI.
"""

import asyncio
import logging
from typing import Protocol, runtime_checkable

from supabase import Client

from nourish.config import settings
from nourish.db.client import get_client

logger = logging.getLogger(__name__)


@runtime_checkable
class ImageStorage(Protocol):
    async def delete(self, key: str) -> None:
        ...


class SupabaseImageStorage:
    """Meal images kept in a Supabase Storage bucket."""

    def __init__(self, bucket: str | None = None, client: Client | None = None):
        self.bucket = bucket or settings.image_bucket
        self._client = client

    async def delete(self, key: str) -> None:
        client = self._client or get_client()
        await asyncio.to_thread(client.storage.from_(self.bucket).remove, [key])
        logger.info("Deleted image %s from bucket %s", key, self.bucket)
