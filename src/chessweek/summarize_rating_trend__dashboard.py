"""Daily rating points and the latest movement for a tracked player."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal

from chessweek.models import GameRecord

TrendDirection = Literal["up", "down", "flat"]


@dataclass(frozen=True, slots=True)
class RatingPoint:
    day: date
    rating: int


@dataclass(frozen=True, slots=True)
class RatingTrend:
    rating: int | None
    delta: int | None
    direction: TrendDirection

    def as_dict(self) -> dict[str, object]:
        return {"rating": self.rating, "delta": self.delta, "direction": self.direction}


def build_rating_points(
    games: Iterable[GameRecord],
    current_rating: int | None = None,
    today: datetime | None = None,
) -> list[RatingPoint]:
    """Collapse game ratings to one point per day, oldest first.

    Games are visited oldest first so the last game of a day wins. When a
    ``current_rating`` is known it overrides the point for ``today``.
    """
    daily: dict[date, int] = {}
    for game in sorted(games, key=lambda record: record.end_time):
        if game.player_rating:
            daily[game.end_time.date()] = game.player_rating
    if current_rating and today is not None:
        daily[today.date()] = current_rating
    return [RatingPoint(day=day, rating=rating) for day, rating in sorted(daily.items())]


def summarize_rating_trend(points: list[RatingPoint]) -> RatingTrend:
    if not points:
        return RatingTrend(rating=None, delta=None, direction="flat")
    latest = points[-1].rating
    if len(points) < 2:
        return RatingTrend(rating=latest, delta=None, direction="flat")
    delta = latest - points[-2].rating
    direction: TrendDirection = "flat"
    if delta > 0:
        direction = "up"
    elif delta < 0:
        direction = "down"
    return RatingTrend(rating=latest, delta=delta, direction=direction)
