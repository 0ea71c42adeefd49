# mandi/utils.py
import os
import uuid
from flask import current_app
from PIL import Image

ALLOWED_IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.webp'}

def save_listing_image(form_picture, owner_id):
    """
    Reduz a imagem do anúncio e salva em UPLOAD_FOLDER com nome aleatório.
    Retorna o caminho público (static) ou None se nenhum arquivo foi enviado.
    """
    if not form_picture or not form_picture.filename:
        return None

    _, f_ext = os.path.splitext(form_picture.filename)
    f_ext = f_ext.lower()
    if f_ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise ValueError(f"Formato de imagem não suportado: {f_ext}")

    owner_prefix = owner_id.split('@')[0]
    picture_fn = f"equipment_{owner_prefix}_{uuid.uuid4().hex}{f_ext}"
    upload_folder = current_app.config['UPLOAD_FOLDER']
    os.makedirs(upload_folder, exist_ok=True)

    i = Image.open(form_picture)
    i.thumbnail(current_app.config['LISTING_IMAGE_SIZE'])
    i.save(os.path.join(upload_folder, picture_fn))

    return f"/static/uploads/{picture_fn}"
