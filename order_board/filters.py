"""Filter state for the board and its translation into REST query params."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from order_board.constant import (
    DEFAULT_TIME_FILTER,
    INITIAL_PAGE,
    OPEN_RANGE_END,
    OPEN_RANGE_START,
    PAGE_SIZE,
    STATUS_VIEWS,
    TIME_FILTERS,
)


def _parse_date(value: str) -> date:
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def _parse_time(value: str) -> time | None:
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        return None


def _format_datetime(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S")


def local_utc_offset(now: datetime | None = None) -> str:
    """Return the local UTC offset formatted like ``+02:00``."""
    current = (now or datetime.now()).astimezone()
    offset = current.utcoffset() or timedelta(0)
    minutes = int(offset.total_seconds() // 60)
    sign = "+" if minutes >= 0 else "-"
    minutes = abs(minutes)
    return f"{sign}{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass
class CustomRange:
    """User-entered custom range. Dates are ``YYYY-MM-DD``, times ``HH:MM``."""

    start_date: str = ""
    end_date: str = ""
    start_time: str = ""
    end_time: str = ""

    def is_empty(self) -> bool:
        return not (self.start_date.strip() or self.end_date.strip())

    def has_times(self) -> bool:
        return bool(self.start_time.strip() or self.end_time.strip())

    def bounds(self) -> tuple[datetime, datetime] | None:
        """Resolve the range to concrete datetimes; open ends get far-off defaults."""
        if self.is_empty():
            return None

        if self.start_date.strip():
            start_day = _parse_date(self.start_date)
            start_clock = _parse_time(self.start_time) if self.start_time.strip() else None
            start = datetime.combine(start_day, start_clock or time(0, 0, 0))
        else:
            start = datetime(*OPEN_RANGE_START, 0, 0, 0)

        if self.end_date.strip():
            end_day = _parse_date(self.end_date)
            end_clock = _parse_time(self.end_time) if self.end_time.strip() else None
            if end_clock is None:
                end = datetime.combine(end_day, time(23, 59, 59))
            else:
                end = datetime.combine(end_day, end_clock.replace(second=59))
        else:
            end = datetime(*OPEN_RANGE_END, 23, 59, 59)

        return start, end


@dataclass
class FilterState:
    """Mutable filter cell shared by the board and its event handlers.

    Push handlers read ``status_view`` when an event arrives, so they always see
    the view that is currently displayed.
    """

    status_view: str = "processing"
    search_term: str = ""
    time_filter: str = DEFAULT_TIME_FILTER
    custom_range: CustomRange = field(default_factory=CustomRange)
    page: int = INITIAL_PAGE
    page_size: int = PAGE_SIZE

    def set_status_view(self, view: str) -> None:
        if view not in STATUS_VIEWS:
            raise ValueError(f"status view must be one of {STATUS_VIEWS}, got {view!r}")
        if view != self.status_view:
            self.status_view = view
            self.page = INITIAL_PAGE

    def toggle_status_view(self) -> str:
        self.set_status_view("completed" if self.status_view == "processing" else "processing")
        return self.status_view

    def set_search_term(self, term: str) -> None:
        if term != self.search_term:
            self.search_term = term
            self.page = INITIAL_PAGE

    def set_time_filter(self, time_filter: str) -> None:
        if time_filter not in TIME_FILTERS:
            raise ValueError(f"time filter must be one of {TIME_FILTERS}, got {time_filter!r}")
        if time_filter != self.time_filter:
            self.time_filter = time_filter
            self.page = INITIAL_PAGE

    def cycle_time_filter(self) -> str:
        idx = TIME_FILTERS.index(self.time_filter)
        self.set_time_filter(TIME_FILTERS[(idx + 1) % len(TIME_FILTERS)])
        return self.time_filter

    def set_custom_range(self, custom_range: CustomRange) -> None:
        self.custom_range = custom_range
        self.time_filter = "custom"
        self.page = INITIAL_PAGE

    def set_page(self, page: int) -> None:
        self.page = max(INITIAL_PAGE, page)

    def set_page_size(self, page_size: int) -> None:
        if page_size <= 0:
            raise ValueError("page size must be positive")
        self.page_size = page_size
        self.page = INITIAL_PAGE

    def clear(self) -> None:
        """Reset search and time filters, keeping the status view."""
        self.search_term = ""
        self.time_filter = DEFAULT_TIME_FILTER
        self.custom_range = CustomRange()
        self.page = INITIAL_PAGE

    def has_active_filters(self) -> bool:
        return self.time_filter != DEFAULT_TIME_FILTER or bool(self.search_term.strip())

    def api_params(self, now: datetime | None = None) -> dict[str, str]:
        """Search and time params in the shape the backend expects."""
        params: dict[str, str] = {}
        term = self.search_term.strip()
        if term:
            params["searchTerm"] = term

        params["dateFilter"] = self.time_filter
        if self.time_filter != "custom":
            return params

        bounds = self.custom_range.bounds()
        if bounds is None:
            return params
        start, end = bounds

        if self.custom_range.has_times():
            params["startDate"] = _format_datetime(start)
            if self.custom_range.end_date.strip():
                params["endDate"] = _format_datetime(end)
            params["timezone"] = local_utc_offset(now)
        else:
            params["startDate"] = start.date().isoformat()
            params["endDate"] = end.date().isoformat()
        return params

    def query(self, status: str | None = None) -> dict[str, str | int]:
        """Full fetch query for the current view (or an explicit status)."""
        query: dict[str, str | int] = dict(self.api_params())
        query["status"] = status or self.status_view
        query["limit"] = self.page_size
        query["page"] = self.page
        return query
