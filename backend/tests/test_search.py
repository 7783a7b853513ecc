import pytest

from conftest import add_subtitles
from subcatalog.services.search_service import (
    SortColumn,
    SortOrder,
    build_order_by,
    parse_search_params,
)


@pytest.mark.parametrize(
    "page, expected",
    [(None, 1), ("1", 1), ("3", 3), (0, 1), ("0", 1), (-5, 1), ("abc", 1), ("", 1), (" 2 ", 2)],
)
def test_page_is_floored_to_one(page, expected):
    assert parse_search_params(page=page).page == expected


@pytest.mark.parametrize(
    "limit, expected",
    [(None, 20), ("10", 10), ("0", 20), (-3, 1), ("500", 100), (100, 100), ("xyz", 20), (1, 1)],
)
def test_limit_is_clamped(limit, expected):
    params = parse_search_params(limit=limit)
    assert params.limit == expected
    assert 1 <= params.limit <= 100


@pytest.mark.parametrize("sort_by", [None, "", "password", "date; DROP TABLE users", "imdb", "created_at"])
def test_unknown_sort_column_falls_back_to_date(sort_by):
    params = parse_search_params(sort_by=sort_by, sort_order="sideways")
    assert params.sort_by == SortColumn.DATE
    assert params.sort_order == SortOrder.DESC


def test_sort_aliases_and_case():
    assert parse_search_params(sort_by="author").sort_by == SortColumn.AUTHOR
    assert parse_search_params(sort_by="author_name").sort_by == SortColumn.AUTHOR
    assert parse_search_params(sort_by="TITLE", sort_order="ASC").sort_order == SortOrder.ASC


def test_order_by_never_contains_user_text():
    params = parse_search_params(sort_by="title; DELETE FROM users", sort_order="desc --")
    compiled = " ".join(str(clause) for clause in build_order_by(params))
    assert "DELETE" not in compiled
    assert "date" in compiled


def test_blank_search_and_lang_are_ignored():
    params = parse_search_params(search="   ", lang="")
    assert params.search is None
    assert params.lang is None


def test_search_end_to_end_second_page(client, database):
    rows = [{"title": f"The Matrix {i}", "lang": "english"} for i in range(25)]
    rows += [{"title": f"The Matrix {i}", "lang": "french"} for i in range(5)]
    rows += [{"title": f"Blade Runner {i}", "lang": "english"} for i in range(5)]
    add_subtitles(database, rows)

    response = client.get("/subtitles", params={"search": "matrix", "lang": "english", "page": 2, "limit": 10})

    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 10
    assert body["pagination"] == {
        "page": 2,
        "limit": 10,
        "total": 25,
        "totalPages": 3,
        "hasMore": True,
        "hasPrev": True,
    }
    assert all(row["lang"] == "english" for row in body["data"])


def test_last_page_has_no_more(client, database):
    add_subtitles(database, [{"title": f"Matrix {i}"} for i in range(25)])

    body = client.get("/subtitles", params={"search": "matrix", "page": 3, "limit": 10}).json()

    assert len(body["data"]) == 5
    assert body["pagination"]["hasMore"] is False
    assert body["pagination"]["hasPrev"] is True


def test_empty_catalog(client):
    body = client.get("/subtitles").json()

    assert body["data"] == []
    assert body["pagination"] == {
        "page": 1,
        "limit": 20,
        "total": 0,
        "totalPages": 0,
        "hasMore": False,
        "hasPrev": False,
    }


def test_search_matches_imdb_author_and_releases(client, database):
    add_subtitles(
        database,
        [
            {"title": "Alpha", "imdb": "0133093"},
            {"title": "Beta", "author_name": "MatrixFan"},
            {"title": "Gamma", "releases": "Some.Release.MATRIX.1080p"},
            {"title": "Delta", "releases": None},
        ],
    )

    by_imdb = client.get("/subtitles", params={"search": "133093"}).json()
    by_text = client.get("/subtitles", params={"search": "matrix", "sortBy": "title", "sortOrder": "asc"}).json()

    assert [row["title"] for row in by_imdb["data"]] == ["Alpha"]
    assert [row["title"] for row in by_text["data"]] == ["Beta", "Gamma"]


def test_search_term_is_not_a_wildcard(client, database):
    add_subtitles(database, [{"title": "100% Love"}, {"title": "1000 Lovers"}])

    body = client.get("/subtitles", params={"search": "100%"}).json()

    assert [row["title"] for row in body["data"]] == ["100% Love"]


def test_default_sort_is_newest_first(client, database):
    add_subtitles(database, [{"title": "old"}, {"title": "middle"}, {"title": "new"}])

    body = client.get("/subtitles").json()

    assert [row["title"] for row in body["data"]] == ["new", "middle", "old"]


def test_invalid_sort_params_behave_like_default(client, database):
    add_subtitles(database, [{"title": "b"}, {"title": "a"}, {"title": "c"}])

    default = client.get("/subtitles").json()
    invalid = client.get("/subtitles", params={"sortBy": "hashed_password", "sortOrder": "random"}).json()

    assert invalid["data"] == default["data"]


def test_sort_by_author_ascending(client, database):
    add_subtitles(
        database,
        [{"author_name": "zed"}, {"author_name": "amy"}, {"author_name": "mike"}],
    )

    body = client.get("/subtitles", params={"sortBy": "author", "sortOrder": "asc"}).json()

    assert [row["author_name"] for row in body["data"]] == ["amy", "mike", "zed"]


def test_non_numeric_paging_is_accepted(client, database):
    add_subtitles(database, [{"title": "only"}])

    response = client.get("/subtitles", params={"page": "first", "limit": "lots"})

    assert response.status_code == 200
    assert response.json()["pagination"]["page"] == 1
    assert response.json()["pagination"]["limit"] == 20


def test_languages_are_distinct_and_sorted(client, database):
    add_subtitles(
        database,
        [{"lang": "french"}, {"lang": "english"}, {"lang": "french"}, {"lang": "arabic"}, {"lang": None}],
    )

    response = client.get("/languages")

    assert response.status_code == 200
    assert response.json() == ["arabic", "english", "french"]


def test_subtitle_detail_adds_imdb_prefix(client, database):
    add_subtitles(database, [{"title": "Numeric", "imdb": "133093"}, {"title": "Prefixed", "imdb": "tt0133093"}])

    first = client.get("/subtitles/1").json()
    second = client.get("/subtitles/2").json()

    assert first["imdb"] == "tt133093"
    assert second["imdb"] == "tt0133093"


def test_subtitle_detail_without_imdb(client, database):
    add_subtitles(database, [{"title": "No id", "imdb": None}])

    assert client.get("/subtitles/1").json()["imdb"] is None


def test_subtitle_not_found(client):
    response = client.get("/subtitles/999")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Subtitle not found"}


def test_huge_page_is_capped_to_fit_offset():
    params = parse_search_params(page="99999999999999999999", limit=20)

    assert params.offset <= 2 ** 63 - 1
    assert params.offset + params.limit > 2 ** 63 - 1


def test_huge_page_returns_empty_result(client, database):
    add_subtitles(database, [{"title": "only"}])

    response = client.get("/subtitles", params={"page": "99999999999999999999"})

    assert response.status_code == 200
    body = response.json()
    assert body["data"] == []
    assert body["pagination"]["total"] == 1
    assert body["pagination"]["hasMore"] is False
