import datetime

from mandi.models.equipment import REQUESTS, REVIEWS, RequestStatus
from mandi.services.errors import DuplicateReview, InvalidActor, ReviewNotAllowed


class ReviewService:

    def __init__(self, store):
        self.store = store

    def submit(self, request_id, reviewer_id, rating, comment=None):
        request = self.store.read(REQUESTS, request_id)
        if reviewer_id == request['owner_id']:
            target_id = request['requester_id']
        elif reviewer_id == request['requester_id']:
            target_id = request['owner_id']
        else:
            raise InvalidActor(request_id=request_id)

        if request['status'] != RequestStatus.APPROVED:
            raise ReviewNotAllowed(request_id=request_id, status=request['status'])
        if self.store.query(REVIEWS, request_id=request_id, reviewer_id=reviewer_id):
            raise DuplicateReview(request_id=request_id)

        return self.store.add(REVIEWS, {
            'request_id': request_id,
            'reviewer_id': reviewer_id,
            'target_id': target_id,
            'rating': int(rating),
            'comment': comment,
            'created_at': datetime.datetime.utcnow(),
        })

    def rating_for(self, identity):
        """Média (uma casa decimal) e quantidade de avaliações recebidas."""
        reviews = self.store.query(REVIEWS, target_id=identity)
        if not reviews:
            return None
        avg = sum(review['rating'] for review in reviews) / len(reviews)
        return {'avg': round(avg, 1), 'count': len(reviews)}

    def reviewed_request_ids(self, reviewer_id):
        return {review['request_id'] for review in self.store.query(REVIEWS, reviewer_id=reviewer_id)}
