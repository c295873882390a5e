"""Output reporting helpers."""
from __future__ import annotations

import csv
import json
import os
import tempfile
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, TextIO

from .models import EnrichedPlace

RESULT_FIELDS = [
    "name",
    "distance",
    "rating",
    "reviews",
    "price_level",
    "cuisine",
    "address",
    "phone",
    "website",
    "lat",
    "lon",
    "place_id",
    "location_id",
]


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def _fsync_dir(path: str) -> None:
    try:
        dir_fd = os.open(path, os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(dir_fd)
    except OSError:
        pass
    finally:
        os.close(dir_fd)


@contextmanager
def atomic_writer(
    path: str,
    mode: str = "w",
    encoding: str = "utf-8",
    newline: Optional[str] = None,
) -> Iterator[TextIO]:
    dir_path = os.path.dirname(path) or "."
    base = os.path.basename(path)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{base}.", suffix=".tmp", dir=dir_path)
    try:
        with os.fdopen(fd, mode, encoding=encoding, newline=newline) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
        _fsync_dir(dir_path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def atomic_write_text(path: str, text: str) -> None:
    with atomic_writer(path, mode="w", encoding="utf-8") as f:
        f.write(text)


def write_json_object(path: str, payload: Dict[str, Any]) -> None:
    with atomic_writer(path, mode="w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def places_to_rows(places: Iterable[EnrichedPlace]) -> List[Dict[str, Any]]:
    return [place.to_dict() for place in places]


def write_results_json(
    path: str,
    places: Iterable[EnrichedPlace],
    summary: Optional[Dict[str, Any]] = None,
) -> None:
    write_json_object(path, {"summary": summary or {}, "places": places_to_rows(places)})


def write_results_csv(path: str, places: Iterable[EnrichedPlace]) -> None:
    rows = places_to_rows(places)
    with atomic_writer(path, mode="w", encoding="utf-8", newline="") as f:
        if not rows:
            f.write("")
            return
        writer = csv.DictWriter(f, fieldnames=RESULT_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            out = dict(row)
            out["cuisine"] = json.dumps(out.get("cuisine", []), ensure_ascii=False)
            writer.writerow(out)


def render_results_table(places: Iterable[EnrichedPlace]) -> List[str]:
    lines: List[str] = []
    for idx, place in enumerate(places, start=1):
        rating = f"{place.rating:.1f}" if place.rating else "-"
        extras = []
        if place.price_level:
            extras.append(place.price_level)
        if place.cuisine:
            extras.append(", ".join(place.cuisine))
        suffix = f" [{'; '.join(extras)}]" if extras else ""
        lines.append(
            f"{idx:>2}. {place.name} - {place.distance or '?'} - rating {rating} "
            f"({place.reviews} reviews){suffix}"
        )
        if place.address:
            lines.append(f"    {place.address}")
    if not lines:
        lines.append("No places found.")
    return lines
