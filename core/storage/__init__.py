"""
Document storage abstraction - interfaces only, the app layer supplies backends
"""
from core.storage.document_store import IDocumentStore, DocumentStoreError

__all__ = ["IDocumentStore", "DocumentStoreError"]
