"""
Filesystem document store
Writes documents under INVOICE_STORAGE_DIR; the app serves that directory
at INVOICE_PUBLIC_BASE_URL
"""
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from core.storage import IDocumentStore, DocumentStoreError
from hotelos.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class LocalDocumentStore(IDocumentStore):
    """Documents as files in one directory"""

    def __init__(self, root_dir: str, public_base_url: str):
        self.root_dir = Path(root_dir)
        self.public_base_url = public_base_url.rstrip("/")

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "LocalDocumentStore":
        config = config or default_settings
        return cls(config.INVOICE_STORAGE_DIR, config.INVOICE_PUBLIC_BASE_URL)

    def _path(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise DocumentStoreError(f"Invalid document name: {name!r}")
        return self.root_dir / name

    def put(self, name: str, content: bytes, content_type: str, overwrite: bool = False) -> str:
        path = self._path(name)
        if path.exists() and not overwrite:
            raise DocumentStoreError(f"Document {name} already exists")

        try:
            self.root_dir.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file so readers never see a partial document
            fd, tmp_path = tempfile.mkstemp(dir=self.root_dir, prefix=".tmp-")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(content)
                os.replace(tmp_path, path)
            except BaseException:
                os.unlink(tmp_path)
                raise
        except OSError as e:
            raise DocumentStoreError(f"Could not write {name}: {e}") from e

        logger.info(f"Stored {name} ({len(content)} bytes, {content_type})")
        return self.url_for(name)

    def exists(self, name: str) -> bool:
        return self._path(name).exists()

    def url_for(self, name: str) -> str:
        self._path(name)
        return f"{self.public_base_url}/{quote(name)}"
