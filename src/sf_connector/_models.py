from typing import TypedDict, Any
from typing_extensions import NotRequired


class TokenResponseJSON(TypedDict, total=False):
    access_token: str
    instance_url: str
    token_type: str
    id: str
    issued_at: str
    signature: str


class ApiErrorJSON(TypedDict):
    errorCode: str
    message: str
    fields: NotRequired[list[str]]


class RecordAttributesJSON(TypedDict):
    type: str
    url: NotRequired[str]


class RecordJSON(TypedDict, total=False):
    attributes: RecordAttributesJSON


class QueryResultJSON(TypedDict):
    totalSize: int
    done: bool
    records: list[dict[str, Any]]
    nextRecordsUrl: NotRequired[str]


class SaveResultJSON(TypedDict):
    id: str
    success: bool
    errors: list[ApiErrorJSON]
