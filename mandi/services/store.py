"""Contrato de armazenamento de documentos usado pelos serviços do marketplace.

Os serviços só enxergam coleções de documentos (dicts) com leitura,
escrita, escrita condicional e consulta. ``SQLAlchemyStore`` é a
implementação da aplicação; ``MemoryStore`` roda sem banco e sem Flask
(testes e scripts).
"""
import copy
import datetime
import itertools
import logging
import threading
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from mandi import db
from mandi.models import COLLECTIONS

logger = logging.getLogger(__name__)


class NotFound(Exception):
    def __init__(self, collection, doc_id):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


def _sort_documents(docs, order_by):
    # Ordenação estável: aplica as chaves da última para a primeira
    for key in reversed(order_by):
        field = key.lstrip('-')
        docs.sort(key=lambda doc: doc.get(field), reverse=key.startswith('-'))
    return docs


class SQLAlchemyStore:
    """DocumentStore sobre a sessão do Flask-SQLAlchemy.

    Fora de ``atomic()`` cada escrita é confirmada na hora, como uma chamada
    de rede independente. Dentro de ``atomic()`` as escritas só são
    confirmadas juntas no final; qualquer exceção desfaz todas.
    """

    def __init__(self, session=None):
        self.session = session if session is not None else db.session
        self._depth = 0

    def _model(self, collection):
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Coleção desconhecida: {collection}")

    def _save(self):
        if self._depth:
            self.session.flush()
            return
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def _get(self, collection, doc_id):
        return self.session.get(self._model(collection), doc_id, populate_existing=True)

    def read(self, collection, doc_id):
        obj = self._get(collection, doc_id)
        if obj is None:
            raise NotFound(collection, doc_id)
        return obj.to_dict()

    def add(self, collection, fields):
        obj = self._model(collection)(**fields)
        self.session.add(obj)
        self._save()
        return obj.to_dict()

    def write(self, collection, doc_id, fields):
        obj = self._get(collection, doc_id)
        if obj is None:
            raise NotFound(collection, doc_id)
        for key, value in fields.items():
            setattr(obj, key, value)
        self._save()

    def conditional_write(self, collection, doc_id, expected, fields):
        """UPDATE ... WHERE id = ? AND <expected>; True se a linha foi alterada."""
        model = self._model(collection)
        count = (self.session.query(model)
                 .filter_by(id=doc_id, **expected)
                 .update(fields, synchronize_session='fetch'))
        self._save()
        if count:
            return True
        if self._get(collection, doc_id) is None:
            raise NotFound(collection, doc_id)
        return False

    def query(self, collection, order_by=(), **filters):
        model = self._model(collection)
        q = self.session.query(model).filter_by(**filters).populate_existing()
        for key in order_by:
            column = getattr(model, key.lstrip('-'))
            q = q.order_by(column.desc() if key.startswith('-') else column.asc())
        return [obj.to_dict() for obj in q.all()]

    def delete(self, collection, doc_id):
        obj = self._get(collection, doc_id)
        if obj is None:
            raise NotFound(collection, doc_id)
        self.session.delete(obj)
        self._save()

    @contextmanager
    def atomic(self):
        self._depth += 1
        try:
            yield self
        except Exception:
            self._depth -= 1
            if not self._depth:
                self.session.rollback()
            raise
        self._depth -= 1
        if not self._depth:
            self._save()


class MemoryStore:
    """DocumentStore em memória, seguro entre threads.

    ``atomic()`` segura o lock durante todo o bloco e restaura o estado
    anterior se o bloco falhar.
    """

    def __init__(self):
        self._data = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()
        self._depth = 0

    def _docs(self, collection):
        if collection not in COLLECTIONS:
            raise ValueError(f"Coleção desconhecida: {collection}")
        return self._data.setdefault(collection, {})

    def read(self, collection, doc_id):
        with self._lock:
            doc = self._docs(collection).get(doc_id)
            if doc is None:
                raise NotFound(collection, doc_id)
            return dict(doc)

    def add(self, collection, fields):
        with self._lock:
            doc = dict(fields)
            doc['id'] = doc.get('id') or next(self._ids)
            doc.setdefault('created_at', datetime.datetime.utcnow())
            self._docs(collection)[doc['id']] = doc
            return dict(doc)

    def write(self, collection, doc_id, fields):
        with self._lock:
            doc = self._docs(collection).get(doc_id)
            if doc is None:
                raise NotFound(collection, doc_id)
            doc.update(fields)

    def conditional_write(self, collection, doc_id, expected, fields):
        with self._lock:
            doc = self._docs(collection).get(doc_id)
            if doc is None:
                raise NotFound(collection, doc_id)
            if any(doc.get(key) != value for key, value in expected.items()):
                return False
            doc.update(fields)
            return True

    def query(self, collection, order_by=(), **filters):
        with self._lock:
            docs = [dict(doc) for doc in self._docs(collection).values()
                    if all(doc.get(key) == value for key, value in filters.items())]
        return _sort_documents(docs, order_by)

    def delete(self, collection, doc_id):
        with self._lock:
            if self._docs(collection).pop(doc_id, None) is None:
                raise NotFound(collection, doc_id)

    @contextmanager
    def atomic(self):
        with self._lock:
            snapshot = copy.deepcopy(self._data) if not self._depth else None
            self._depth += 1
            try:
                yield self
            except Exception:
                if snapshot is not None:
                    self._data = snapshot
                raise
            finally:
                self._depth -= 1


def get_store():
    """Store usado pelas rotas: a sessão do Flask-SQLAlchemy da requisição."""
    return SQLAlchemyStore(db.session)
