"""Unit tests for query-parameter pagination in core/pagination.py."""

import pytest

from core.errors import MissingParameters, ParseError
from core.pagination import Pagination, extract_pagination


class TestExtractPagination:
    def test_no_params_means_everything(self) -> None:
        assert extract_pagination({}) == Pagination(limit=None, offset=0)

    def test_unrelated_params_are_ignored(self) -> None:
        assert extract_pagination({"sort": "desc"}) == Pagination()

    def test_limit_and_offset(self) -> None:
        assert extract_pagination({"limit": "10", "offset": "20"}) == Pagination(limit=10, offset=20)

    def test_zero_is_allowed(self) -> None:
        assert extract_pagination({"limit": "0", "offset": "0"}) == Pagination(limit=0, offset=0)

    @pytest.mark.parametrize("params", [{"limit": "10"}, {"offset": "5"}])
    def test_one_without_the_other(self, params: dict[str, str]) -> None:
        with pytest.raises(MissingParameters):
            extract_pagination(params)

    @pytest.mark.parametrize(
        "params,bad",
        [
            ({"limit": "ten", "offset": "0"}, "limit"),
            ({"limit": "10", "offset": "1.5"}, "offset"),
            ({"limit": "-1", "offset": "0"}, "limit"),
            ({"limit": "10", "offset": ""}, "offset"),
        ],
    )
    def test_bad_values(self, params: dict[str, str], bad: str) -> None:
        with pytest.raises(ParseError) as excinfo:
            extract_pagination(params)
        assert excinfo.value.name == bad
