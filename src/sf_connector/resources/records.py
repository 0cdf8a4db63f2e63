from collections.abc import Iterable, Iterator, Mapping
from types import TracebackType
from typing import Any
from urllib.parse import quote

from ..auth import AuthSession
from ..client import RequestDispatcher
from ..concurrency import run_with_concurrency
from ..config import Config
from ..data.record import InsertResult, QueryPage, Record
from ..logger import getLogger

LOGGER = getLogger("records")


class RecordService:
    """Record insertion and SOQL queries over a ``RequestDispatcher``"""

    client: RequestDispatcher

    def __init__(self, client: RequestDispatcher):
        self.client = client

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        transport=None,
        timeout: float = 30.0,
        callback=None,
        **client_kwargs,
    ) -> "RecordService":
        """Wire an ``AuthSession`` and ``RequestDispatcher`` for ``config``.

        The configuration is validated here, so an incomplete one raises
        ``ConfigError`` before any request is made.
        """
        config.validate()
        auth_session = AuthSession(
            config, callback=callback, transport=transport, timeout=timeout
        )
        client = RequestDispatcher(
            auth_session, transport=transport, timeout=timeout, **client_kwargs
        )
        return cls(client)

    def insert_record(self, sobject_type: str, fields: Mapping[str, Any]) -> InsertResult:
        response = self.client.call(
            "POST",
            f"sobjects/{quote(sobject_type)}/",
            body=dict(fields),
            resource_name=sobject_type,
        )
        result = InsertResult.from_json(response)
        LOGGER.info("Inserted %s %s", sobject_type, result.id)
        return result

    def insert_records(
        self,
        sobject_type: str,
        records: Iterable[Mapping[str, Any]],
        concurrency: int = 1,
    ) -> list[InsertResult]:
        """Insert each record, up to ``concurrency`` at a time."""
        return run_with_concurrency(
            concurrency,
            [
                lambda fields=fields: self.insert_record(sobject_type, fields)
                for fields in records
            ],
        )

    def query_page(self, soql: str) -> QueryPage:
        response = self.client.call(
            "GET", "query/", params={"q": soql}, resource_name="query"
        )
        return QueryPage.from_json(response)

    def query_more(self, next_page_token: str) -> QueryPage:
        if not next_page_token:
            raise ValueError("Cannot get more records without nextRecordsUrl")
        response = self.client.call("GET", next_page_token, resource_name="query")
        return QueryPage.from_json(response)

    def query_records(self, soql: str) -> Iterator[Record]:
        """
        Lazily yields every record matching ``soql``.

        Batches are fetched as the consumer reaches them; nothing is
        requested before the first record is asked for, and abandoning the
        iterator stops further fetches. Call again to restart the query.
        """
        page = self.query_page(soql)
        LOGGER.debug("Query matched %d record(s)", page.total_size)
        while True:
            yield from page.records
            if page.done:
                return
            assert page.next_page_token is not None
            page = self.query_more(page.next_page_token)

    def close(self):
        self.client.close()
        self.client.auth_session.close()

    def __enter__(self):
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self.close()
