"""BigQuery REST client backing the percentile reference store."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import requests

from .catalog import PRO_GROUP_NAMES, PRO_LOOKBACK_YEARS, WAREHOUSE_TABLES, normalize_test_type
from .config import Config
from .errors import AuthenticationError, ConfigurationError, DataValidationError, StoreError
from .models import PercentileRange

logger = logging.getLogger(__name__)

_RANGE_COLUMNS = (
    "test_type, metric_name, p25, p50, p75, min_value, max_value, sample_size, last_updated"
)


class WarehouseClient:
    """Small, typed client for BigQuery ``jobs.query`` over HTTPS.

    Implements the reference-store interface against a percentile ranges
    table and reads professional samples from the per-test results tables.
    """

    _BASE_URL = "https://bigquery.googleapis.com/bigquery/v2"
    _MAX_RETRIES = 5
    _MAX_BACKOFF_SECONDS = 30
    _MAX_POLLS = 20
    _POLL_INTERVAL_SECONDS = 1
    _QUERY_TIMEOUT_MS = 10000

    def __init__(self, config: Config, timeout_seconds: int = 30) -> None:
        """Initialize an authenticated warehouse client.

        Args:
            config: Validated runtime configuration including project and token.
            timeout_seconds: Per-request timeout in seconds.
        """
        self._config = config
        self._timeout_seconds = timeout_seconds
        self._base_url = f"{self._BASE_URL}/projects/{config.project_id}"

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/json",
                "Authorization": f"Bearer {config.access_token}",
            }
        )

    def _build_url(self, path: str) -> str:
        """Build a fully qualified API URL from a path below the project."""
        return f"{self._base_url}/{path.lstrip('/')}"

    def _table(self, table_name: str) -> str:
        return f"`{self._config.project_id}.{self._config.dataset}.{table_name}`"

    def _extract_backoff_seconds(self, response: requests.Response, attempt: int) -> int:
        """Compute exponential backoff seconds, honoring Retry-After when available."""
        retry_after_header = response.headers.get("Retry-After")
        if retry_after_header:
            try:
                retry_after_seconds = int(retry_after_header)
                return min(self._MAX_BACKOFF_SECONDS, max(1, retry_after_seconds))
            except ValueError:
                pass

        return min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1))

    def _request_json(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Execute a request with retry logic for 429/5xx responses.

        Raises:
            AuthenticationError: If the warehouse rejects the access token.
            StoreError: If the request repeatedly fails, returns HTTP >= 400,
                or does not return a JSON object.
        """
        url = self._build_url(path)
        last_error: Optional[Exception] = None

        for attempt in range(1, self._MAX_RETRIES + 1):
            try:
                response = self._session.request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    timeout=self._timeout_seconds,
                )
            except requests.RequestException as exc:
                last_error = exc
                if attempt == self._MAX_RETRIES:
                    raise StoreError(f"Warehouse request failed after retries: {method} {url}") from exc
                time.sleep(min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1)))
                continue

            status_code = response.status_code
            is_retryable = status_code == 429 or 500 <= status_code <= 599

            if is_retryable and attempt < self._MAX_RETRIES:
                time.sleep(self._extract_backoff_seconds(response, attempt))
                continue

            if status_code in (401, 403):
                raise AuthenticationError(
                    f"Warehouse rejected credentials: {method} {url} returned {status_code}"
                )

            if status_code >= 400:
                raise StoreError(
                    "Warehouse request failed: "
                    f"{method} {url} returned {status_code} - {response.text}"
                )

            try:
                payload = response.json()
            except ValueError as exc:
                raise StoreError(f"Warehouse returned invalid JSON: {method} {url}") from exc

            if not isinstance(payload, dict):
                raise StoreError(f"Warehouse returned unexpected payload shape: {method} {url}")

            return payload

        raise StoreError(f"Warehouse request failed after retries: {method} {url}") from last_error

    @staticmethod
    def _parameter(name: str, type_name: str, value: Any) -> Dict[str, Any]:
        if isinstance(value, datetime):
            value = value.astimezone(timezone.utc).isoformat()
        return {
            "name": name,
            "parameterType": {"type": type_name},
            "parameterValue": {"value": None if value is None else str(value)},
        }

    @staticmethod
    def _array_parameter(name: str, type_name: str, values: Sequence[Any]) -> Dict[str, Any]:
        return {
            "name": name,
            "parameterType": {"type": "ARRAY", "arrayType": {"type": type_name}},
            "parameterValue": {"arrayValues": [{"value": str(value)} for value in values]},
        }

    @staticmethod
    def _decode_value(value: Any, type_name: str) -> Any:
        """Convert a BigQuery REST cell (always a string) to a Python value."""
        if value is None:
            return None
        if type_name in ("FLOAT", "FLOAT64", "NUMERIC", "BIGNUMERIC"):
            return float(value)
        if type_name in ("INTEGER", "INT64"):
            return int(value)
        if type_name in ("BOOLEAN", "BOOL"):
            return str(value).lower() == "true"
        if type_name == "TIMESTAMP":
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        return value

    def _decode_rows(self, payload: Dict[str, Any], fields: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        for row in payload.get("rows", []):
            cells = row.get("f") or []
            if len(cells) != len(fields):
                raise DataValidationError(
                    f"Warehouse row has {len(cells)} cells but schema has {len(fields)} fields"
                )
            rows.append(
                {
                    field["name"]: self._decode_value(cell.get("v"), field.get("type", "STRING"))
                    for field, cell in zip(fields, cells)
                }
            )
        return rows

    def query(self, sql: str, parameters: Optional[List[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
        """Run a standard-SQL query and return decoded rows.

        Polls ``getQueryResults`` while the job is incomplete and follows
        ``pageToken`` until every page is read.

        Raises:
            StoreError: If the job does not complete or any request fails.
        """
        body: Dict[str, Any] = {
            "query": sql,
            "useLegacySql": False,
            "location": self._config.location,
            "timeoutMs": self._QUERY_TIMEOUT_MS,
        }
        if parameters:
            body["parameterMode"] = "NAMED"
            body["queryParameters"] = parameters

        payload = self._request_json("POST", "queries", json_body=body)
        job_id = (payload.get("jobReference") or {}).get("jobId")
        results_params: Dict[str, Any] = {"location": self._config.location}

        polls = 0
        while not payload.get("jobComplete", False):
            if job_id is None or polls >= self._MAX_POLLS:
                raise StoreError(f"Warehouse query did not complete: job_id={job_id}")
            polls += 1
            time.sleep(self._POLL_INTERVAL_SECONDS)
            payload = self._request_json("GET", f"queries/{job_id}", params=results_params)

        fields: List[Dict[str, Any]] = (payload.get("schema") or {}).get("fields", [])
        rows = self._decode_rows(payload, fields)

        page_token = payload.get("pageToken")
        while page_token:
            payload = self._request_json(
                "GET",
                f"queries/{job_id}",
                params={**results_params, "pageToken": page_token},
            )
            rows.extend(self._decode_rows(payload, fields))
            page_token = payload.get("pageToken")

        logger.debug("Warehouse query returned rows", extra={"job_id": job_id, "row_count": len(rows)})
        return rows

    def _row_to_range(self, row: Dict[str, Any]) -> Optional[PercentileRange]:
        try:
            return PercentileRange(
                test_type=str(row["test_type"]),
                metric_name=str(row["metric_name"]),
                p25=float(row["p25"]),
                p50=float(row["p50"]),
                p75=float(row["p75"]),
                min_value=float(row["min_value"]),
                max_value=float(row["max_value"]),
                sample_size=int(row["sample_size"]),
                last_updated=row["last_updated"],
            )
        except (KeyError, TypeError, ValueError, DataValidationError) as exc:
            logger.warning(
                "Skipping malformed percentile range row",
                extra={"row": row, "error": str(exc)},
            )
            return None

    def get_percentile_range(self, test_type: str, metric_name: str) -> Optional[PercentileRange]:
        """Return the stored range for one metric, or ``None`` when absent."""
        rows = self.query(
            f"SELECT {_RANGE_COLUMNS} FROM {self._table(self._config.ranges_table)} "
            "WHERE test_type = @test_type AND metric_name = @metric_name",
            [
                self._parameter("test_type", "STRING", normalize_test_type(test_type)),
                self._parameter("metric_name", "STRING", metric_name),
            ],
        )
        if not rows:
            return None
        return self._row_to_range(rows[0])

    def get_all_ranges_for_test_type(self, test_type: str) -> Dict[str, PercentileRange]:
        """Return every stored range for a test type keyed by metric name."""
        rows = self.query(
            f"SELECT {_RANGE_COLUMNS} FROM {self._table(self._config.ranges_table)} "
            "WHERE test_type = @test_type",
            [self._parameter("test_type", "STRING", normalize_test_type(test_type))],
        )
        ranges: Dict[str, PercentileRange] = {}
        for row in rows:
            percentile_range = self._row_to_range(row)
            if percentile_range is not None:
                ranges[percentile_range.metric_name] = percentile_range
        return ranges

    def list_percentile_ranges(self) -> List[PercentileRange]:
        """Return all stored ranges ordered by test type and metric name."""
        rows = self.query(
            f"SELECT {_RANGE_COLUMNS} FROM {self._table(self._config.ranges_table)} "
            "ORDER BY test_type, metric_name"
        )
        return [item for item in (self._row_to_range(row) for row in rows) if item is not None]

    def upsert_percentile_range(self, percentile_range: PercentileRange) -> None:
        """Insert or wholesale-replace the row for the range's key via ``MERGE``."""
        sql = (
            f"MERGE {self._table(self._config.ranges_table)} AS target "
            "USING (SELECT @test_type AS test_type, @metric_name AS metric_name, "
            "@p25 AS p25, @p50 AS p50, @p75 AS p75, @min_value AS min_value, "
            "@max_value AS max_value, @sample_size AS sample_size, "
            "@last_updated AS last_updated) AS source "
            "ON target.test_type = source.test_type AND target.metric_name = source.metric_name "
            "WHEN MATCHED THEN UPDATE SET p25 = source.p25, p50 = source.p50, p75 = source.p75, "
            "min_value = source.min_value, max_value = source.max_value, "
            "sample_size = source.sample_size, last_updated = source.last_updated "
            f"WHEN NOT MATCHED THEN INSERT ({_RANGE_COLUMNS}) VALUES "
            "(source.test_type, source.metric_name, source.p25, source.p50, source.p75, "
            "source.min_value, source.max_value, source.sample_size, source.last_updated)"
        )
        self.query(
            sql,
            [
                self._parameter("test_type", "STRING", normalize_test_type(percentile_range.test_type)),
                self._parameter("metric_name", "STRING", percentile_range.metric_name),
                self._parameter("p25", "FLOAT64", percentile_range.p25),
                self._parameter("p50", "FLOAT64", percentile_range.p50),
                self._parameter("p75", "FLOAT64", percentile_range.p75),
                self._parameter("min_value", "FLOAT64", percentile_range.min_value),
                self._parameter("max_value", "FLOAT64", percentile_range.max_value),
                self._parameter("sample_size", "INT64", percentile_range.sample_size),
                self._parameter("last_updated", "TIMESTAMP", percentile_range.last_updated),
            ],
        )

    def fetch_pro_test_records(self, test_type: str) -> List[Dict[str, Any]]:
        """Read professional-athlete results for a test type.

        Each returned record is keyed by metric name. Only tests from the
        configured professional groups within the lookback window are read.

        Raises:
            ConfigurationError: If the test type has no warehouse table.
        """
        normalized = normalize_test_type(test_type)
        if normalized not in WAREHOUSE_TABLES:
            raise ConfigurationError(f"No warehouse results table configured for test type '{test_type}'.")

        table_name, columns = WAREHOUSE_TABLES[normalized]
        select_list = ", ".join(f"{column} AS {metric}" for metric, column in columns.items())
        sql = (
            f"SELECT {select_list} FROM {self._table(table_name)} "
            "WHERE (group_name_1 IN UNNEST(@pro_groups) "
            "OR group_name_2 IN UNNEST(@pro_groups) "
            "OR group_name_3 IN UNNEST(@pro_groups)) "
            "AND DATE(test_date) >= DATE_SUB(CURRENT_DATE(), INTERVAL @lookback_years YEAR)"
        )
        records = self.query(
            sql,
            [
                self._array_parameter("pro_groups", "STRING", PRO_GROUP_NAMES),
                self._parameter("lookback_years", "INT64", PRO_LOOKBACK_YEARS),
            ],
        )
        logger.info(
            "Fetched professional test records",
            extra={"test_type": normalized, "record_count": len(records)},
        )
        return records
