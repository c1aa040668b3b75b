from .sqlite_record_repository import SQLiteRecordRepository

__all__ = ["SQLiteRecordRepository"]
