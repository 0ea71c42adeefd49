import datetime

from mandi.models.equipment import MESSAGES, REQUESTS, RequestStatus
from mandi.services.errors import ChatUnavailable, EmptyMessage, InvalidActor


class NegotiationChannel:
    """Chat de negociação de um pedido aprovado (só dono e solicitante)."""

    def __init__(self, store):
        self.store = store

    def _open_for(self, request_id, party):
        request = self.store.read(REQUESTS, request_id)
        if party not in (request['owner_id'], request['requester_id']):
            raise InvalidActor(request_id=request_id)
        if request['status'] != RequestStatus.APPROVED:
            raise ChatUnavailable(request_id=request_id, status=request['status'])
        return request

    def post(self, request_id, sender_id, text):
        self._open_for(request_id, sender_id)
        text = (text or '').strip()
        if not text:
            raise EmptyMessage()
        return self.store.add(MESSAGES, {
            'request_id': request_id,
            'sender_id': sender_id,
            'text': text,
            'created_at': datetime.datetime.utcnow(),
        })

    def messages(self, request_id, reader_id):
        self._open_for(request_id, reader_id)
        # Empate no horário é resolvido pelo id, que é crescente
        return self.store.query(MESSAGES, order_by=('created_at', 'id'), request_id=request_id)
