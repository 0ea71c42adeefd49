import json
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from mandi import db
from mandi.models.user import ApiLog

def log_event(event_type, status, details, actor=None, ip_address=None):
    """Função central para criar entradas no ApiLog (trilha de auditoria do marketplace)."""
    try:
        log_entry = ApiLog(
            event_type=event_type,
            status=status,
            details=json.dumps(details, ensure_ascii=False, default=str),
            actor=actor,
            ip_address=ip_address
        )
        db.session.add(log_entry)
        db.session.commit()
    except SQLAlchemyError as e:
        current_app.logger.error(f"ERRO AO SALVAR LOG: {e}")
        db.session.rollback()
