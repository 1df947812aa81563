"""Rating aggregation for a product's reviews."""

from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, Mapping

RATING_VALUES = (5, 4, 3, 2, 1)
RECOMMEND_THRESHOLD = 4


@dataclass(frozen=True)
class ReviewSummary:
    average_rating: float = 0.0
    total_reviews: int = 0
    rating_distribution: Dict[int, int] = field(default_factory=lambda: {r: 0 for r in RATING_VALUES})
    recommended_percentage: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def _round2(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _rating_of(review) -> int:
    if isinstance(review, int):
        return review
    if isinstance(review, Mapping):
        return int(review["rating"])
    return int(review.rating)


def summarize(reviews: Iterable) -> ReviewSummary:
    ratings = [_rating_of(review) for review in reviews]
    distribution = {rating: 0 for rating in RATING_VALUES}
    for rating in ratings:
        if rating in distribution:
            distribution[rating] += 1

    total = len(ratings)
    if total == 0:
        return ReviewSummary(rating_distribution=distribution)

    average = Decimal(sum(ratings)) / Decimal(total)
    recommended = sum(1 for rating in ratings if rating >= RECOMMEND_THRESHOLD)
    return ReviewSummary(
        average_rating=_round2(average),
        total_reviews=total,
        rating_distribution=distribution,
        recommended_percentage=_round2(Decimal(recommended) * 100 / Decimal(total)),
    )


def count_helpful(votes: Iterable) -> int:
    return sum(1 for vote in votes if vote.is_helpful)
