from datetime import datetime, timedelta, timezone

import pytest

from order_board.filters import CustomRange, FilterState, local_utc_offset


def test_default_query_targets_processing_first_page():
    query = FilterState().query()
    assert query == {"dateFilter": "all", "status": "processing", "limit": 50, "page": 1}


def test_search_term_is_trimmed_and_omitted_when_blank():
    filters = FilterState()
    filters.set_search_term("   ")
    assert "searchTerm" not in filters.api_params()
    filters.set_search_term("  latte ")
    assert filters.api_params()["searchTerm"] == "latte"


def test_changing_filters_resets_page():
    filters = FilterState()
    filters.set_page(4)
    filters.set_search_term("mocha")
    assert filters.page == 1

    filters.set_page(3)
    filters.cycle_time_filter()
    assert filters.time_filter == "today"
    assert filters.page == 1

    filters.set_page(2)
    filters.toggle_status_view()
    assert filters.status_view == "completed"
    assert filters.page == 1


def test_set_page_never_goes_below_one():
    filters = FilterState()
    filters.set_page(0)
    assert filters.page == 1


def test_invalid_view_and_time_filter_rejected():
    filters = FilterState()
    with pytest.raises(ValueError):
        filters.set_status_view("pending")
    with pytest.raises(ValueError):
        filters.set_time_filter("decade")
    with pytest.raises(ValueError):
        filters.set_page_size(0)


def test_custom_range_dates_only():
    filters = FilterState()
    filters.set_custom_range(CustomRange(start_date="2024-05-01", end_date="2024-05-03"))
    params = filters.api_params()
    assert params == {"dateFilter": "custom", "startDate": "2024-05-01", "endDate": "2024-05-03"}


def test_custom_range_open_end_uses_far_future_default():
    filters = FilterState()
    filters.set_custom_range(CustomRange(start_date="2024-05-01"))
    assert filters.api_params()["endDate"] == "2099-12-31"


def test_custom_range_with_times_sends_timezone():
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    filters = FilterState()
    filters.set_custom_range(
        CustomRange(start_date="2024-05-01", end_date="2024-05-01", start_time="08:00", end_time="10:30")
    )
    params = filters.api_params(now)
    assert params["startDate"] == "2024-05-01 08:00:00"
    assert params["endDate"] == "2024-05-01 10:30:59"
    assert params["timezone"] == local_utc_offset(now)


def test_local_utc_offset_formats_negative_offsets():
    now = datetime(2024, 1, 1, tzinfo=timezone(-timedelta(hours=5, minutes=30)))
    # astimezone() converts to the machine zone, so only the shape is stable.
    value = local_utc_offset(now)
    assert value[0] in "+-"
    assert len(value) == 6 and value[3] == ":"


def test_clear_keeps_status_view():
    filters = FilterState(status_view="completed")
    filters.set_search_term("tea")
    filters.set_custom_range(CustomRange(start_date="2024-05-01"))
    assert filters.has_active_filters()
    filters.clear()
    assert not filters.has_active_filters()
    assert filters.status_view == "completed"
