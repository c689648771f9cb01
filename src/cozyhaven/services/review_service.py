import logging
from typing import Callable, List
from uuid import uuid4
from cozyhaven.models.reviews import Review, ReviewChange
from cozyhaven.repository.review_repo import ReviewRepository
from cozyhaven.schemas.reviews import ReviewRequest
from cozyhaven.services.rating_service import RatingAggregator
from cozyhaven.utils.constants import MAX_TRANSACTION_RETRIES
from cozyhaven.utils.custom_exceptions import (
    ConcurrencyConflict,
    ConcurrentUpdateError,
    InvalidRating,
    NotFoundException,
)

logger = logging.getLogger(__name__)


class ReviewService:
    """Review writes that carry their hotel rating updates in the same transaction."""

    def __init__(
        self,
        review_repo: ReviewRepository,
        rating_aggregator: RatingAggregator,
        max_attempts: int = MAX_TRANSACTION_RETRIES,
    ):
        self.review_repo = review_repo
        self.rating_aggregator = rating_aggregator
        self.max_attempts = max_attempts

    def add_review(self, user_id: str, req: ReviewRequest) -> Review:
        review = Review(
            review_id=str(uuid4()),
            user_id=user_id,
            room_id=req.room_id,
            rating=req.rating,
            comment=req.comment,
        )
        self._write(lambda: [ReviewChange(after=review)])
        return review

    def update_review(self, review_id: str, req: ReviewRequest) -> Review:
        def build():
            before = self.get_review(review_id)
            after = Review(
                review_id=review_id,
                user_id=before.user_id,
                room_id=req.room_id,
                rating=req.rating,
                comment=req.comment,
                review_date=before.review_date,
            )
            return [ReviewChange(before=before, after=after)]

        return self._write(build)[0].after

    def delete_review(self, review_id: str):
        self._write(lambda: [ReviewChange(before=self.get_review(review_id))])

    def write_reviews(self, changes: List[ReviewChange]) -> List[ReviewChange]:
        """Apply a batch of inserts, updates and deletes atomically."""
        seen = set()
        for change in changes:
            review = change.after or change.before
            if review is None:
                raise ValueError("a review change needs a before or an after image")
            if review.review_id in seen:
                raise ValueError(f"review {review.review_id} appears twice in the batch")
            seen.add(review.review_id)
        return self._write(lambda: changes)

    def get_review(self, review_id: str) -> Review:
        review = self.review_repo.get_review_by_id(review_id)
        if review is None:
            raise NotFoundException("review", review_id, 404)
        return review

    def _write(self, build: Callable[[], List[ReviewChange]]) -> List[ReviewChange]:
        for attempt in range(1, self.max_attempts + 1):
            changes = build()
            for change in changes:
                if change.after is not None:
                    self._validate_rating(change.after.rating)

            rating_updates = self.rating_aggregator.stage_updates(changes)
            try:
                self.review_repo.write_reviews(changes, rating_updates)
            except ConcurrentUpdateError:
                logger.info(
                    f"Review write lost a race on hotel ratings "
                    f"(attempt {attempt}/{self.max_attempts})"
                )
                continue

            for update in rating_updates:
                logger.info(
                    f"Hotel {update.hotel_id} rating set to {update.rating} "
                    f"over {update.review_count} review(s)"
                )
            return changes

        raise ConcurrencyConflict("hotel ratings are contended, retry the review write")

    @staticmethod
    def _validate_rating(rating):
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise InvalidRating(f"rating must be an integer from 1 to 5, got {rating!r}")
