import pytest

from records.errors import ValidationError
from records.query import ListParams, Page, escape_like


def test_defaults():
    params = ListParams.parse()
    assert (params.page, params.limit, params.search, params.filters) == (1, 10, None, {})
    assert params.offset == 0


def test_parses_strings_and_drops_empty_filters():
    params = ListParams.parse(page="3", limit="5", search="  ada ", status="Active", department="", role=None)
    assert params.page == 3
    assert params.limit == 5
    assert params.offset == 10
    assert params.search == "ada"
    assert params.filters == {"status": "Active"}


@pytest.mark.parametrize("field,value", [
    ("page", "0"), ("page", "-1"), ("page", "abc"), ("limit", "0"), ("limit", "1.5"),
])
def test_rejects_bad_pagination(field, value):
    with pytest.raises(ValidationError) as exc:
        ListParams.parse(**{field: value})
    assert exc.value.errors[0]["field"] == field


def test_blank_search_is_ignored():
    assert ListParams.parse(search="   ").search is None


def test_escape_like():
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"


def test_page_dict():
    page = Page(items=[1, 2], total=21, page=3, limit=10)
    assert page.to_dict(serialize=str) == {
        "items": ["1", "2"], "totalPages": 3, "currentPage": 3, "total": 21,
    }
    assert Page(items=[], total=0, page=1, limit=10).total_pages == 0
