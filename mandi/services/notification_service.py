from flask import current_app
from flask_mail import Message
from mandi import mail
from mandi.models.equipment import RequestStatus

SUBJECTS = {
    RequestStatus.APPROVED: 'Your booking request was approved',
    RequestStatus.REJECTED: 'Your booking request was declined',
}

def notify_requester(request):
    """Avisa o solicitante por e-mail. Falhas de envio só são registradas no log."""
    subject = SUBJECTS.get(request['status'])
    if not subject:
        return False

    if request['status'] == RequestStatus.APPROVED:
        body = (f"Good news! {request.get('owner_name') or 'The owner'} approved your request for "
                f"{request['listing_name']}. Open the marketplace to chat and finalise the deal.")
    else:
        body = (f"Sorry, your request for {request['listing_name']} was declined. "
                f"Browse the marketplace for other equipment.")

    msg = Message(subject, recipients=[request['requester_id']], body=body)
    try:
        mail.send(msg)
    except Exception as e:
        current_app.logger.warning(f"Falha ao enviar e-mail para {request['requester_id']}: {e}")
        return False
    return True
