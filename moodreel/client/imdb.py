"""Read an IMDb "Your Ratings" CSV export into rated titles."""

import csv
import io
from datetime import date
from pathlib import Path

from pydantic import ValidationError

from moodreel.constants import MAX_PROMPT_RATINGS
from moodreel.models.schemas import RatedTitle
from moodreel.utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_COLUMNS = ("Const", "Your Rating", "Title", "Year")


class RatingsFileError(ValueError):
    """The file is not a usable IMDb ratings export."""


def _parse_int(value: str | None) -> int | None:
    try:
        return int((value or "").strip())
    except ValueError:
        return None


def _parse_date(value: str | None) -> date:
    try:
        return date.fromisoformat((value or "").strip())
    except ValueError:
        return date.min


def parse_ratings(text: str, limit: int = MAX_PROMPT_RATINGS) -> list[RatedTitle]:
    """Highest-rated titles first, most recently rated breaking ties."""
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    missing = [col for col in REQUIRED_COLUMNS if col not in (reader.fieldnames or [])]
    if missing:
        raise RatingsFileError(f"missing columns: {', '.join(missing)}")

    rows: list[tuple[RatedTitle, date]] = []
    for line_no, row in enumerate(reader, start=2):
        if not row.get("Const") or not row.get("Your Rating"):
            continue
        try:
            rated = RatedTitle(
                title=(row.get("Title") or "").replace('"', "").strip(),
                year=_parse_int(row.get("Year")),
                user_rating=_parse_int(row.get("Your Rating")),
            )
        except ValidationError as e:
            logger.debug(f"Skipping ratings row {line_no}: {e.error_count()} errors")
            continue
        rows.append((rated, _parse_date(row.get("Date Rated"))))

    if not rows:
        raise RatingsFileError("no valid ratings found")

    rows.sort(key=lambda item: (item[0].user_rating, item[1]), reverse=True)
    return [rated for rated, _ in rows[:limit]]


def load_ratings(path: str | Path, limit: int = MAX_PROMPT_RATINGS) -> list[RatedTitle]:
    return parse_ratings(Path(path).read_text(encoding="utf-8"), limit=limit)
