from hotelos.storage.local_store import LocalDocumentStore

__all__ = ['LocalDocumentStore']
