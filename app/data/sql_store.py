# app/data/sql_store.py
import json

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.data.models.partition import PartitionModel
from app.data.partition_store import PartitionStore, Snapshot
from app.domain.errors import TransportError
from app.utils.logging import get_logger
from app.utils.retry import db_retry

logger = get_logger(__name__)


class SqlPartitionStore(PartitionStore):
    """
    Partycje w tabeli cart_partitions.
    Optimistic locking na kolumnie version:
    UPDATE ... SET value = ?, version = version + 1 WHERE name = ? AND version = ?
    Powiadomienia tylko o zapisach z tego procesu.
    """

    def __init__(self, session_factory: sessionmaker):
        super().__init__()
        self.session_factory = session_factory

    def read(self, name: str) -> Snapshot:
        try:
            return self._read(name)
        except SQLAlchemyError as e:
            logger.error(f"Odczyt partycji {name} nieudany: {e}")
            raise TransportError(f"Storage unavailable: {e}") from e

    def compare_and_set(self, name: str, expected_version: int, value: dict) -> bool:
        try:
            committed = self._compare_and_set(name, expected_version, value)
        except SQLAlchemyError as e:
            logger.error(f"Zapis partycji {name} nieudany: {e}")
            raise TransportError(f"Storage unavailable: {e}") from e

        if committed:
            self._dispatch(name, value, expected_version + 1)
        return committed

    @db_retry()
    def _read(self, name: str) -> Snapshot:
        with self.session_factory() as db:
            row = db.get(PartitionModel, name)
            if row is None:
                return Snapshot(None, 0)
            return Snapshot(json.loads(row.value), row.version)

    # bez db_retry: blad po commicie wygladalby przy powtorce jak cudzy zapis
    def _compare_and_set(self, name: str, expected_version: int, value: dict) -> bool:
        payload = json.dumps(value)
        with self.session_factory() as db:
            if expected_version == 0:
                return self._insert(db, name, payload)

            rowcount = db.execute(
                update(PartitionModel)
                .where(
                    PartitionModel.name == name,
                    PartitionModel.version == expected_version,
                )
                .values(value=payload, version=expected_version + 1)
            ).rowcount

            #0 rows affected = ktos inny zapisal w miedzyczasie
            if rowcount == 0:
                db.rollback()
                return False

            db.commit()
            return True

    def _insert(self, db: Session, name: str, payload: str) -> bool:
        db.add(PartitionModel(name=name, value=payload, version=1))
        try:
            db.commit()
        except IntegrityError:
            #pierwszy zapis wygral ktos inny
            db.rollback()
            return False
        return True
