import logging
from mandi import create_app
from mandi.services.booking_service import BookingCoordinator
from mandi.services.store import get_store

logger = logging.getLogger('mandi.scheduler')

# --- FUNÇÃO PRINCIPAL DA TAREFA AGENDADA ---
def reconcile_locked_listings(store=None):
    """
    Repete a varredura em todo anúncio já alugado/vendido que ainda tem
    pedidos 'Pending' (varredura interrompida no aceite, ou pedido gravado
    no mesmo instante do aceite). Pode rodar quantas vezes for preciso.
    Executada pelo cron a cada 15 minutos.
    """
    logger.info("--- INICIANDO TAREFA AGENDADA: RECONCILIAÇÃO DE PEDIDOS ---")

    coordinator = BookingCoordinator(store or get_store())
    report = coordinator.reconcile_all()

    if not report:
        logger.info("Nenhum anúncio travado com pedidos pendentes. Nenhuma ação necessária.")
    for listing_id, result in report.items():
        logger.info("Anúncio %s: %d pedido(s) marcados como 'Item Unavailable'", listing_id, len(result.swept))
        if result.failed:
            logger.warning("Anúncio %s: %d pedido(s) ficaram pendentes; nova tentativa no próximo ciclo",
                           listing_id, len(result.failed))

    logger.info("--- TAREFA FINALIZADA ---")
    return report

# --- EXECUÇÃO DO SCRIPT ---
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    # Este script precisa carregar a aplicação Flask para ter acesso ao banco de dados
    app = create_app()
    with app.app_context():
        reconcile_locked_listings()
