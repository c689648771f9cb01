import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Set
from cozyhaven.models.hotels import HotelRatingUpdate
from cozyhaven.models.reviews import Review, ReviewChange
from cozyhaven.repository.hotel_repo import HotelRepository
from cozyhaven.repository.review_repo import ReviewRepository
from cozyhaven.repository.room_repo import RoomRepository
from cozyhaven.utils.constants import CURRENCY_PLACES, MAX_TRANSACTION_RETRIES
from cozyhaven.utils.custom_exceptions import (
    ConcurrencyConflict,
    ConcurrentUpdateError,
    NotFoundException,
)

logger = logging.getLogger(__name__)


def mean_rating(ratings: Iterable[int]) -> Optional[Decimal]:
    ratings = list(ratings)
    if not ratings:
        return None
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return mean.quantize(CURRENCY_PLACES, rounding=ROUND_HALF_UP)


class RatingAggregator:
    """Sole writer of Hotel.rating, the mean of all reviews on a hotel's rooms.

    Rating updates carry the hotel's rating_version as a write condition, so
    concurrent review writes on one hotel serialize on that row.
    """

    def __init__(
        self,
        review_repo: ReviewRepository,
        room_repo: RoomRepository,
        hotel_repo: HotelRepository,
        max_attempts: int = MAX_TRANSACTION_RETRIES,
    ):
        self.review_repo = review_repo
        self.room_repo = room_repo
        self.hotel_repo = hotel_repo
        self.max_attempts = max_attempts

    def on_review_written(self, hotel_id: str) -> Optional[Decimal]:
        """Recompute one hotel's rating from the reviews currently stored."""
        for attempt in range(1, self.max_attempts + 1):
            update = self._stage_hotel(hotel_id, [])
            try:
                self.hotel_repo.update_rating(update)
            except ConcurrentUpdateError:
                logger.info(
                    f"Rating of hotel {hotel_id} changed during recompute "
                    f"(attempt {attempt}/{self.max_attempts})"
                )
                continue
            logger.info(f"Hotel {hotel_id} rating set to {update.rating}")
            return update.rating

        raise ConcurrencyConflict(f"hotel {hotel_id} rating is contended, retry")

    def affected_hotels(self, changes: List[ReviewChange]) -> Set[str]:
        """Distinct hotels owning the rooms of every pre- and post-image.

        Each image's hotel_id is set from its room on the way.
        """
        room_hotels: Dict[str, str] = {}
        hotels = set()
        for change in changes:
            for review in (change.before, change.after):
                if review is None:
                    continue
                review.hotel_id = self._hotel_of(review, room_hotels)
                hotels.add(review.hotel_id)
        return hotels

    def stage_updates(self, changes: List[ReviewChange]) -> List[HotelRatingUpdate]:
        return [
            self._stage_hotel(hotel_id, changes)
            for hotel_id in sorted(self.affected_hotels(changes))
        ]

    def _stage_hotel(self, hotel_id: str, changes: List[ReviewChange]) -> HotelRatingUpdate:
        # version first: a write committed after this read fails our condition
        hotel = self.hotel_repo.get_hotel_by_id(hotel_id)
        if hotel is None:
            raise NotFoundException("hotel", hotel_id, 404)
        ratings = self.review_repo.get_hotel_ratings(hotel_id)

        for change in changes:
            if change.before is not None and change.before.hotel_id == hotel_id:
                ratings.pop(change.before.review_id, None)
        for change in changes:
            if change.after is not None and change.after.hotel_id == hotel_id:
                ratings[change.after.review_id] = change.after.rating

        return HotelRatingUpdate(
            hotel_id=hotel_id,
            rating=mean_rating(ratings.values()),
            expected_version=hotel.rating_version,
            review_count=len(ratings),
        )

    def _hotel_of(self, review: Review, cache: Dict[str, str]) -> str:
        if review.room_id not in cache:
            room = self.room_repo.get_room_by_id(review.room_id)
            if room is not None:
                cache[review.room_id] = room.hotel_id
            elif review.hotel_id:
                # the room left the catalog; the stored review still knows its hotel
                return review.hotel_id
            else:
                raise NotFoundException("room", review.room_id, 404)
        return cache[review.room_id]
