from types import SimpleNamespace

from commerce.application.review_summary import count_helpful, summarize


def test_empty_reviews_give_zeroed_summary():
    summary = summarize([])
    assert summary.average_rating == 0.0
    assert summary.total_reviews == 0
    assert summary.recommended_percentage == 0.0
    assert summary.rating_distribution == {5: 0, 4: 0, 3: 0, 2: 0, 1: 0}


def test_average_and_recommended_are_rounded():
    summary = summarize([5, 5, 3])
    assert summary.average_rating == 4.33
    assert summary.total_reviews == 3
    assert summary.recommended_percentage == 66.67
    assert summary.rating_distribution == {5: 2, 4: 0, 3: 1, 2: 0, 1: 0}


def test_accepts_rows_and_mappings():
    reviews = [SimpleNamespace(rating=4), {"rating": 2}, 1]
    summary = summarize(reviews)
    assert summary.total_reviews == 3
    assert summary.average_rating == 2.33
    assert summary.recommended_percentage == 33.33


def test_half_values_round_up():
    summary = summarize([4, 5])
    assert summary.average_rating == 4.5
    assert summary.recommended_percentage == 100.0


def test_to_dict_has_every_bucket():
    data = summarize([1]).to_dict()
    assert set(data["rating_distribution"]) == {1, 2, 3, 4, 5}
    assert data["average_rating"] == 1.0


def test_count_helpful_ignores_unhelpful_votes():
    votes = [SimpleNamespace(is_helpful=True), SimpleNamespace(is_helpful=False), SimpleNamespace(is_helpful=True)]
    assert count_helpful(votes) == 2
    assert count_helpful([]) == 0
