"""Coordenação de reservas de equipamentos.

Fluxo: anúncio ``Available`` -> pedidos ``Pending`` -> o dono aceita um ->
o anúncio fica ``Rented``/``Sold`` e os demais pedidos pendentes viram
``Item Unavailable`` -> o chat do pedido aceito é liberado.

A exclusividade depende de uma única escrita condicional no status do
anúncio (``Available`` -> travado). A varredura dos pedidos irmãos é só
limpeza: idempotente, pode rodar de novo a qualquer momento.
"""
import datetime
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from mandi.models.equipment import (
    LISTINGS, REQUESTS, ListingStatus, RequestStatus,
)
from mandi.services.errors import (
    InvalidActor, InvalidBookingDates, ListingAlreadyLocked,
    ListingUnavailable, StaleRequest,
)

logger = logging.getLogger(__name__)


@dataclass
class AcceptResult:
    request: dict
    listing_status: str
    swept: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)


@dataclass
class SweepResult:
    swept: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)


class BookingCoordinator:

    def __init__(self, store):
        self.store = store

    # --- Pedido de reserva ---
    def request_booking(self, listing_id, requester_id, requester_name=None,
                        start_date: Optional[datetime.date] = None,
                        end_date: Optional[datetime.date] = None) -> dict:
        listing = self.store.read(LISTINGS, listing_id)

        if requester_id == listing['owner_id']:
            raise InvalidActor('You cannot book your own item.')
        if listing['status'] != ListingStatus.AVAILABLE:
            raise ListingUnavailable(listing_id=listing_id, status=listing['status'])
        self._validate_dates(start_date, end_date)

        # Nome e imagem são uma cópia do anúncio neste instante
        request = self.store.add(REQUESTS, {
            'listing_id': listing['id'],
            'listing_name': listing['name'],
            'listing_image': listing.get('image_url'),
            'owner_id': listing['owner_id'],
            'owner_name': listing.get('owner_name'),
            'requester_id': requester_id,
            'requester_name': requester_name or 'Farmer',
            'offer_type': listing['offer_type'],
            'start_date': start_date,
            'end_date': end_date,
            'status': RequestStatus.PENDING,
            'created_at': datetime.datetime.utcnow(),
        })

        # O anúncio pode ter sido travado enquanto o pedido era gravado
        current = self.store.read(LISTINGS, listing_id)
        if current['status'] != ListingStatus.AVAILABLE:
            self._mark_unavailable(request['id'])
            raise ListingUnavailable(listing_id=listing_id, status=current['status'])

        logger.info("Pedido %s criado para o anúncio %s por %s",
                    request['id'], listing_id, requester_id)
        return request

    @staticmethod
    def _validate_dates(start_date, end_date):
        if start_date is None and end_date is None:
            return
        if start_date is None or end_date is None:
            raise InvalidBookingDates('Please choose both a start and an end date.')
        if end_date < start_date:
            raise InvalidBookingDates('End date cannot be before start date.')
        if start_date < datetime.date.today():
            raise InvalidBookingDates('Cannot book dates in the past.')

    # --- Aceite ---
    def accept_request(self, request_id, actor=None) -> AcceptResult:
        request = self.store.read(REQUESTS, request_id)
        if actor is not None and actor != request['owner_id']:
            raise InvalidActor(request_id=request_id)
        if request['status'] != RequestStatus.PENDING:
            raise StaleRequest(request_id=request_id, status=request['status'])

        listing_id = request['listing_id']
        locked_status = ListingStatus.locked_for(request['offer_type'])

        with self.store.atomic():
            locked = self.store.conditional_write(
                LISTINGS, listing_id,
                {'status': ListingStatus.AVAILABLE},
                {'status': locked_status},
            )
            if not locked:
                # O pedido continua Pending; a varredura do vencedor cuida dele
                raise ListingAlreadyLocked(listing_id=listing_id, request_id=request_id)
            approved = self.store.conditional_write(
                REQUESTS, request_id,
                {'status': RequestStatus.PENDING},
                {'status': RequestStatus.APPROVED},
            )
            if not approved:
                raise StaleRequest(request_id=request_id)

        logger.info("Pedido %s aprovado; anúncio %s agora %s", request_id, listing_id, locked_status)
        sweep = self.sweep_siblings(listing_id, request_id)
        request['status'] = RequestStatus.APPROVED
        return AcceptResult(request=request, listing_status=locked_status,
                            swept=sweep.swept, failed=sweep.failed)

    # --- Recusa ---
    def reject_request(self, request_id, actor=None) -> dict:
        request = self.store.read(REQUESTS, request_id)
        if actor is not None and actor != request['owner_id']:
            raise InvalidActor(request_id=request_id)
        if request['status'] == RequestStatus.REJECTED:
            return request
        if request['status'] != RequestStatus.PENDING:
            raise StaleRequest(request_id=request_id, status=request['status'])

        rejected = self.store.conditional_write(
            REQUESTS, request_id,
            {'status': RequestStatus.PENDING},
            {'status': RequestStatus.REJECTED},
        )
        if not rejected:
            # Outra sessão mudou o pedido entre a leitura e a escrita
            request = self.store.read(REQUESTS, request_id)
            if request['status'] == RequestStatus.REJECTED:
                return request
            raise StaleRequest(request_id=request_id, status=request['status'])

        request['status'] = RequestStatus.REJECTED
        return request

    # --- Chat ---
    def derive_chat_eligibility(self, request_id) -> bool:
        request = self.store.read(REQUESTS, request_id)
        return request['status'] == RequestStatus.APPROVED

    # --- Varredura ---
    def _mark_unavailable(self, request_id):
        return self.store.conditional_write(
            REQUESTS, request_id,
            {'status': RequestStatus.PENDING},
            {'status': RequestStatus.ITEM_UNAVAILABLE},
        )

    def sweep_siblings(self, listing_id, winner_id=None) -> SweepResult:
        """Marca como ``Item Unavailable`` todo pedido pendente do anúncio, exceto o vencedor."""
        result = SweepResult()
        pending = self.store.query(REQUESTS, listing_id=listing_id, status=RequestStatus.PENDING)
        for sibling in pending:
            if sibling['id'] == winner_id:
                continue
            try:
                if self._mark_unavailable(sibling['id']):
                    result.swept.append(sibling['id'])
            except Exception:
                logger.exception("Falha ao varrer o pedido %s do anúncio %s", sibling['id'], listing_id)
                result.failed.append(sibling['id'])
        if result.failed:
            logger.warning("Varredura parcial no anúncio %s: %d pedido(s) pendente(s)",
                           listing_id, len(result.failed))
        return result

    def reconcile_listing(self, listing_id) -> SweepResult:
        """Repete a varredura de um anúncio já travado."""
        listing = self.store.read(LISTINGS, listing_id)
        if listing['status'] not in ListingStatus.LOCKED:
            return SweepResult()
        winners = self.store.query(REQUESTS, listing_id=listing_id, status=RequestStatus.APPROVED)
        winner_id = winners[0]['id'] if winners else None
        return self.sweep_siblings(listing_id, winner_id)

    def reconcile_all(self) -> dict:
        """Varre todos os anúncios travados que ainda têm pedidos pendentes."""
        report = {}
        for status in ListingStatus.LOCKED:
            for listing in self.store.query(LISTINGS, status=status):
                if self.store.query(REQUESTS, listing_id=listing['id'], status=RequestStatus.PENDING):
                    report[listing['id']] = self.reconcile_listing(listing['id'])
        return report
