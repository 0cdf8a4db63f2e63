from .record import InsertResult, QueryPage, Record

__all__ = ["InsertResult", "QueryPage", "Record"]
