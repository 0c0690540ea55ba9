# manuorder/files/service.py

import logging
from typing import Dict, Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..access.policy import AccessPolicy, Action
from ..auth.models import SessionUser
from ..orders.models import DesignFile
from .storage import BlobStore, reference_for_key
from .validation import validate_upload

logger = logging.getLogger(__name__)


class UploadService:

    @staticmethod
    def upload(
        actor: SessionUser,
        store: BlobStore,
        file_name: Optional[str],
        content_type: Optional[str],
        data: bytes,
    ) -> Dict[str, Any]:
        """Validate and store one design file. Nothing reaches the store unless validation passes."""
        AccessPolicy.authorize(actor, Action.UPLOAD_FILE)
        name, stored_type = validate_upload(file_name, content_type, len(data))

        file_url = store.put(data, name, stored_type)
        logger.info(f"Stored {name} ({len(data)} bytes) for {actor.user_id} as {file_url}")
        return {
            "file_name": name,
            "file_url": file_url,
            "file_type": stored_type,
            "file_size": len(data),
        }

    @staticmethod
    def resolve_download(db: Session, actor: SessionUser, store: BlobStore, key: str) -> str:
        """
        Signed URL for a stored object.
        Files already attached to an order follow that order's ownership rule.
        """
        reference = reference_for_key(key)
        attached = db.execute(
            select(DesignFile).where(DesignFile.file_url == reference)
        ).scalars().first()
        AccessPolicy.authorize(actor, Action.DOWNLOAD_FILE, attached.order if attached else None)
        return store.get_retrievable_url(reference)
