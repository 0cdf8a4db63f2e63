from .records import RecordService

__all__ = ["RecordService"]
