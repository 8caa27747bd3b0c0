# ==============================================
# Query & Page (Data Classes)
# ==============================================
#
# PURPOSE:
#   Data classes for ONE request against the PRTG table API and
#   the ONE page it returns, plus the wire encoding of both.
#
# WHY THIS FILE EXISTS:
#   Streams recompute offset and size on every iteration. Keeping
#   the request immutable means each fetch gets its own copy and a
#   stream can never corrupt a query another fetch is using.
#
# ENUMS:
# ------
# - Content(Enum): SENSORS, DEVICES, GROUPS, PROBES, MESSAGES
#     The content selector sent as `content=`.
#
# CLASSES:
# --------
# - Query (frozen dataclass)
#     content, columns, filters, sort_by, start, count
#     - page(start, count) -> Query       → copy with new offset/size
#     - with_filter(**filters) -> Query   → copy with extra filters
#     - to_params() -> list[tuple]        → ordered wire parameters
#
# - Page (frozen dataclass)
#     records: list[dict], total: int
#
# FUNCTIONS:
# ----------
# - as_naive_utc(dt) -> datetime → aware values converted to naive UTC
# - to_ole_date(dt) -> float     → fractional days since 1899-12-30
# - from_ole_date(value) -> datetime
#
# WIRE FORMAT:
# ------------
#   content=sensors&columns=objid,name&count=500&start=500
#       &filter_status=5&filter_status=13&sortby=name
#
#   count=* requests every matching row. start is only sent when
#   set, so the first page of a stream reads "count=500".
#
# ==============================================

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

# Sent as count=* to request every matching row
ALL = "*"

# OLE automation dates count days from this instant
OLE_EPOCH = datetime(1899, 12, 30)


class Content(Enum):
    """
    Content selectors understood by the table API.

    The value is both the `content=` parameter and the JSON key
    holding the rows in the response.
    """
    SENSORS = "sensors"
    DEVICES = "devices"
    GROUPS = "groups"
    PROBES = "probenode"
    MESSAGES = "messages"


DEFAULT_COLUMNS: Dict[Content, Tuple[str, ...]] = {
    Content.SENSORS: ("objid", "name", "device", "group", "probe", "status", "lastvalue", "message"),
    Content.DEVICES: ("objid", "name", "host", "group", "probe", "status"),
    Content.GROUPS: ("objid", "name", "probe", "status", "totalsens"),
    Content.PROBES: ("objid", "name", "status", "condition"),
    Content.MESSAGES: ("objid", "name", "datetime", "parent", "status", "type", "message"),
}


def as_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive datetimes are returned as-is."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def to_ole_date(value: datetime) -> float:
    """
    Encode a datetime as an OLE automation date.

    The integer part counts days since 1899-12-30, the fractional part
    is the time of day divided by 86400 seconds. Aware datetimes are
    converted to UTC first; naive datetimes are used as-is.

    Args:
        value: The datetime to encode

    Returns:
        Fractional day count
    """
    return (as_naive_utc(value) - OLE_EPOCH) / timedelta(days=1)


def from_ole_date(value: Union[float, str]) -> datetime:
    """
    Decode an OLE automation date into a naive datetime.

    Rounded to the nearest microsecond so the same raw value always
    decodes to the same datetime.
    """
    days = float(value)
    micros = round(days * 86400 * 1_000_000)
    return OLE_EPOCH + timedelta(microseconds=micros)


def _encode_value(value: Any) -> str:
    if isinstance(value, datetime):
        return repr(to_ole_date(value))
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@dataclass(frozen=True)
class Query:
    """
    One immutable request against the table API.

    Filters map a field name to a value or a list of values; a list
    produces one `filter_<field>=` term per value (PRTG ORs them).
    """

    content: Content
    columns: Tuple[str, ...] = ()
    filters: Tuple[Tuple[str, Any], ...] = ()
    sort_by: Optional[str] = None
    start: Optional[int] = None
    count: Union[int, str] = 500

    @classmethod
    def create(
        cls,
        content: Content,
        columns: Optional[List[str]] = None,
        filters: Optional[Dict[str, Any]] = None,
        sort_by: Optional[str] = None,
        count: Union[int, str] = 500
    ) -> "Query":
        """
        Build a query, falling back to the default columns for the content type.

        Args:
            content: What to retrieve
            columns: Columns to request (None = defaults for the content)
            filters: field → value or list of values
            sort_by: Optional sort field
            count: Page size or ALL

        Returns:
            A new Query
        """
        return cls(
            content=content,
            columns=tuple(columns) if columns else DEFAULT_COLUMNS[content],
            filters=tuple((filters or {}).items()),
            sort_by=sort_by,
            count=count,
        )

    def page(self, start: Optional[int], count: Union[int, str]) -> "Query":
        """Return a copy requesting `count` rows from offset `start`."""
        return replace(self, start=start, count=count)

    def with_filter(self, **filters: Any) -> "Query":
        """Return a copy with `filters` replacing any existing terms for the same fields."""
        kept = tuple((k, v) for k, v in self.filters if k not in filters)
        return replace(self, filters=kept + tuple(filters.items()))

    def filter_value(self, name: str) -> Any:
        for key, value in self.filters:
            if key == name:
                return value
        return None

    def to_params(self) -> List[Tuple[str, str]]:
        """
        Encode the query as ordered wire parameters.

        Returns:
            List of (name, value) pairs ready for requests' `params=`
        """
        params: List[Tuple[str, str]] = [("content", self.content.value)]
        if self.columns:
            params.append(("columns", ",".join(self.columns)))
        params.append(("count", str(self.count)))
        if self.start is not None:
            params.append(("start", str(self.start)))
        for name, value in self.filters:
            values = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
            for item in values:
                params.append((f"filter_{name}", _encode_value(item)))
        if self.sort_by:
            params.append(("sortby", self.sort_by))
        return params


@dataclass(frozen=True)
class Page:
    """
    Rows returned by one Query, plus the server-reported total.

    The total is the number of rows matching the query's filters,
    not the number of rows on this page.
    """
    records: List[Dict[str, Any]] = field(default_factory=list)
    total: int = 0

    def __len__(self) -> int:
        return len(self.records)
