from __future__ import annotations

from pathlib import Path

import pytest

from src.data import load_rating_store, normalize_id
from src.user_cf.errors import EmptyInputError
from src.user_cf.recommender import UserUserCFRecommender


def test_wide_file_with_numeric_labels(wide_csv: Path) -> None:
    store = load_rating_store(wide_csv)
    assert store.user_ids == (1, 2, 3, 4)
    assert store.item_ids == (101, 102, 103, 104)
    assert store.item_names == (None, None, None, None)
    # "0" and an empty field are both unrated
    assert store.rating(1, 1) is None
    assert store.rating(1, 2) is None
    assert store.rating(1, 3) == 1.0
    assert store.mean_rating(store.user_index(2)) == pytest.approx(2.5)


def test_wide_file_with_title_labels(tmp_path: Path) -> None:
    path = tmp_path / "titles.csv"
    path.write_text("User,Heat,Jumanji,Casino\n0,5,0,3\n1,0,4,2\n")
    store = load_rating_store(path)
    assert store.item_ids == (1, 2, 3)
    assert store.item_names == ("Heat", "Jumanji", "Casino")
    assert store.user_ids == (0, 1)


def test_long_file_is_pivoted(tmp_path: Path) -> None:
    path = tmp_path / "ratings.csv"
    path.write_text(
        "userId,movieId,rating,timestamp\n"
        "7,20,4.0,1\n"
        "5,10,3.5,2\n"
        "7,10,2.0,3\n"
    )
    store = load_rating_store(path, layout="long")
    assert store.user_ids == (5, 7)
    assert store.item_ids == (10, 20)
    assert store.rating(0, 0) == 3.5
    assert store.rating(0, 1) is None
    assert store.rating(1, 1) == 4.0


def test_long_file_skips_rows_with_blank_fields(tmp_path: Path) -> None:
    path = tmp_path / "ratings.csv"
    path.write_text("userId,movieId,rating\n1,10,4\n1,20,3\n2,10,5\n2,,4\n")
    store = load_rating_store(path, layout="long")
    assert store.user_ids == (1, 2)
    assert store.item_ids == (10, 20)
    assert store.item_index(20) == 1
    assert store.rating(1, 1) is None


def test_long_file_rejects_duplicates(tmp_path: Path) -> None:
    path = tmp_path / "ratings.csv"
    path.write_text("userId,movieId,rating\n1,10,4\n1,10,5\n")
    with pytest.raises(ValueError, match="duplicate"):
        load_rating_store(path, layout="long")


def test_movies_file_supplies_titles(wide_csv: Path, tmp_path: Path) -> None:
    movies = tmp_path / "movies.csv"
    movies.write_text("movieId,title,genres\n101,Heat (1995),Action\n104,Casino (1995),Crime\n")
    store = load_rating_store(wide_csv, movies_path=movies)
    assert store.item_names == ("Heat (1995)", None, None, "Casino (1995)")


def test_empty_file_raises(tmp_path: Path) -> None:
    path = tmp_path / "empty.csv"
    path.write_text("")
    with pytest.raises(EmptyInputError):
        load_rating_store(path)


def test_header_only_gives_empty_store(tmp_path: Path) -> None:
    path = tmp_path / "header.csv"
    path.write_text("userId,1,2,3\n")
    store = load_rating_store(path)
    assert store.n_users == 0
    assert store.n_items == 3
    assert UserUserCFRecommender(store).recommend(1, 3) == []


def test_non_numeric_rating_raises(tmp_path: Path) -> None:
    path = tmp_path / "bad.csv"
    path.write_text("userId,1,2\n1,5,great\n")
    with pytest.raises(ValueError):
        load_rating_store(path)


def test_missing_file_and_bad_layout(tmp_path: Path, wide_csv: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_rating_store(tmp_path / "nope.csv")
    with pytest.raises(ValueError):
        load_rating_store(wide_csv, layout="tall")


@pytest.mark.parametrize(
    "raw, expected",
    [("12", 12), (" 7 ", 7), ("alice", "alice"), (3.0, 3), (2.5, 2.5)],
)
def test_normalize_id(raw: object, expected: object) -> None:
    assert normalize_id(raw) == expected


def test_from_csv_end_to_end(wide_csv: Path) -> None:
    rec = UserUserCFRecommender.from_csv(wide_csv)
    recs = rec.recommend(2, 10)
    assert {r.itemId for r in recs} == {102, 103}
    assert all(1.0 <= r.score <= 5.0 for r in recs)
