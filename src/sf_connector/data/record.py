from typing import Any, NamedTuple

from .._models import QueryResultJSON, RecordJSON, SaveResultJSON
from ..exceptions import ApiErrorDetail


class Record(dict[str, Any]):
    """
    A Salesforce record: field values in the order the API returned them,
    tagged with the sobject type they belong to.
    """

    sobject_type: str
    url: str | None

    def __init__(self, sobject_type: str, fields: dict[str, Any] | None = None, /, **kwargs):
        super().__init__(fields or {}, **kwargs)
        self.sobject_type = sobject_type
        self.url = None

    @classmethod
    def from_json(cls, data: RecordJSON, sobject_type: str = "") -> "Record":
        fields: dict[str, Any] = dict(data)
        attributes = fields.pop("attributes", None) or {}
        record = cls(attributes.get("type") or sobject_type, fields)
        record.url = attributes.get("url")
        return record

    def __repr__(self):
        return f"{type(self).__name__}({self.sobject_type!r}, {dict.__repr__(self)})"

    def __eq__(self, other):
        if isinstance(other, Record) and other.sobject_type != self.sobject_type:
            return False
        return super().__eq__(other)

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    __hash__ = None  # type: ignore[assignment]


class InsertResult(NamedTuple):
    id: str
    success: bool
    errors: tuple[ApiErrorDetail, ...] = ()

    @classmethod
    def from_json(cls, data: SaveResultJSON) -> "InsertResult":
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected insert response: {data!r}")
        success = bool(data.get("success"))
        record_id = data.get("id")
        if success and (not isinstance(record_id, str) or not record_id):
            raise ValueError(f"Successful insert response has no record id: {data!r}")
        return cls(
            record_id or "",
            success,
            tuple(ApiErrorDetail.from_json(error) for error in data.get("errors") or ()),
        )


class QueryPage(NamedTuple):
    """
    One batch of results returned by the SOQL query API.

    Attributes:
        records (tuple[Record, ...]): The records in this batch
        total_size (int): The total number of records that match the query
        done (bool): True when no further batch exists
        next_page_token (str, optional): nextRecordsUrl of the following batch
    """

    records: tuple[Record, ...]
    total_size: int
    done: bool
    next_page_token: str | None = None

    @classmethod
    def from_json(cls, data: QueryResultJSON) -> "QueryPage":
        done = bool(data.get("done", True))
        next_page_token = data.get("nextRecordsUrl") or None
        if not done and not next_page_token:
            raise ValueError("Query result is not done but has no nextRecordsUrl")
        return cls(
            tuple(Record.from_json(record) for record in data.get("records") or ()),
            int(data.get("totalSize", 0)),
            done,
            None if done else next_page_token,
        )
