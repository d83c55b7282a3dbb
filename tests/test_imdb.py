"""Tests for IMDb ratings export parsing."""

import pytest

from moodreel.client.imdb import RatingsFileError, load_ratings, parse_ratings

HEADER = "Const,Your Rating,Date Rated,Title,URL,Title Type,IMDb Rating,Runtime (mins),Year,Genres\n"


def row(const, rating, rated, title, year):
    return f'{const},{rating},{rated},"{title}",https://www.imdb.com/title/{const}/,Movie,8.0,120,{year},Drama\n'


class TestParseRatings:
    def test_sorted_by_rating_then_recency(self):
        text = (
            HEADER
            + row("tt1", 8, "2020-01-01", "Older Eight", 1990)
            + row("tt2", 10, "2019-05-05", "Ten", 2000)
            + row("tt3", 8, "2023-03-03", "Newer Eight", 2010)
        )

        ratings = parse_ratings(text)

        assert [r.title for r in ratings] == ["Ten", "Newer Eight", "Older Eight"]
        assert ratings[0].user_rating == 10
        assert ratings[0].year == 2000

    def test_limit(self):
        text = HEADER + "".join(
            row(f"tt{i}", 1 + i % 10, "2020-01-01", f"Film {i}", 2000) for i in range(150)
        )

        assert len(parse_ratings(text)) == 100
        assert len(parse_ratings(text, limit=5)) == 5

    def test_quotes_removed_and_bad_rows_skipped(self):
        text = (
            "\ufeff"
            + HEADER
            + 'tt1,9,2020-01-01,"The ""Best"" Film",u,Movie,8.0,120,1999,Drama\n'
            + row("tt2", "", "2020-01-01", "No Rating", 2000)
            + row("tt3", 42, "2020-01-01", "Out Of Range", 2000)
            + row("tt4", 7, "", "No Date", "")
        )

        ratings = parse_ratings(text)

        assert [r.title for r in ratings] == ["The Best Film", "No Date"]
        assert ratings[1].year is None

    def test_missing_columns(self):
        with pytest.raises(RatingsFileError, match="missing columns"):
            parse_ratings("Title,Year\nHeat,1995\n")

    def test_no_valid_rows(self):
        with pytest.raises(RatingsFileError, match="no valid ratings"):
            parse_ratings(HEADER)

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "ratings.csv"
        path.write_text(HEADER + row("tt1", 9, "2021-01-01", "Heat", 1995), encoding="utf-8")

        assert [r.label for r in load_ratings(path)] == ["Heat (1995)"]
