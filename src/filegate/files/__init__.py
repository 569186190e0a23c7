from .service import ExternalApiError, FileRecord, FileService

__all__ = ["ExternalApiError", "FileRecord", "FileService"]
