"""
Document store interface

Stores rendered artifacts (invoices, reports) and hands back a URL the
front end can open. Implementations decide where bytes actually live.
"""
from abc import ABC, abstractmethod


class DocumentStoreError(Exception):
    """Raised when a document cannot be written or addressed."""


class IDocumentStore(ABC):
    """Document store interface"""

    @abstractmethod
    def put(
        self,
        name: str,
        content: bytes,
        content_type: str,
        overwrite: bool = False,
    ) -> str:
        """Store content under name and return its public URL.

        Args:
            name: object name, unique within the store
            content: raw bytes
            content_type: MIME type recorded alongside the object
            overwrite: replace an existing object instead of failing

        Raises:
            DocumentStoreError: the object exists (and overwrite is False)
                or the backend rejected the write
        """

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Whether an object with this name is already stored"""

    @abstractmethod
    def url_for(self, name: str) -> str:
        """Public URL of name, whether or not it exists yet"""
