"""Persistence and SQLModel definitions for the Center Ledger backend.

Every ledger collection lives in one ``LedgerEntry`` table; the record itself
is kept as a JSON document so any payload is stored as sent.
"""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from sqlmodel import Field, Session, SQLModel, create_engine, select

from .config import SQLITE_FILE_NAME

engine = create_engine(
    f"sqlite:///{SQLITE_FILE_NAME}",
    echo=False,
    connect_args={"check_same_thread": False},
)

# Ensure fresh metadata when re-importing in test contexts.
SQLModel.metadata.clear()


class LedgerEntry(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    entry_id: str = Field(index=True)
    collection: str = Field(index=True)
    payload: str = "{}"
    created_at: datetime = Field(default_factory=datetime.utcnow)


def create_db_and_tables() -> None:
    SQLModel.metadata.create_all(engine)


def new_entry_id() -> str:
    return uuid4().hex[:24]


def entry_document(entry: LedgerEntry) -> Dict[str, Any]:
    document = json.loads(entry.payload or "{}")
    document["_id"] = entry.entry_id
    document.setdefault("createdAt", entry.created_at.isoformat())
    return document


def _find(session: Session, collection: str, key: str, record_key: str) -> Optional[LedgerEntry]:
    query = select(LedgerEntry).where(LedgerEntry.collection == collection)
    if record_key in ("id", "_id"):
        return session.exec(query.where(LedgerEntry.entry_id == key)).first()
    # Name keyed ledgers also accept the generated id.
    for entry in session.exec(query.order_by(LedgerEntry.id)).all():
        if entry.entry_id == key or str(json.loads(entry.payload or "{}").get(record_key)) == key:
            return entry
    return None


def list_entries(collection: str) -> List[Dict[str, Any]]:
    with Session(engine) as session:
        entries = session.exec(
            select(LedgerEntry).where(LedgerEntry.collection == collection).order_by(LedgerEntry.id)
        ).all()
        return [entry_document(entry) for entry in entries]


def insert_entry(collection: str, document: Mapping[str, Any]) -> Dict[str, Any]:
    now = datetime.utcnow()
    body = {key: value for key, value in document.items() if key != "_id"}
    body["createdAt"] = now.isoformat()
    entry = LedgerEntry(
        entry_id=new_entry_id(),
        collection=collection,
        payload=json.dumps(body, ensure_ascii=False),
        created_at=now,
    )
    with Session(engine) as session:
        session.add(entry)
        session.commit()
        session.refresh(entry)
        return entry_document(entry)


def update_entry(
    collection: str,
    key: str,
    changes: Mapping[str, Any],
    *,
    record_key: str = "id",
) -> Optional[Dict[str, Any]]:
    """Shallow-merge ``changes`` into the matching document; ``None`` when missing."""

    with Session(engine) as session:
        entry = _find(session, collection, key, record_key)
        if entry is None:
            return None
        document = json.loads(entry.payload or "{}")
        document.update({name: value for name, value in changes.items() if name != "_id"})
        document["updatedAt"] = datetime.utcnow().isoformat()
        entry.payload = json.dumps(document, ensure_ascii=False)
        session.add(entry)
        session.commit()
        session.refresh(entry)
        return entry_document(entry)


def delete_entry(collection: str, key: str, *, record_key: str = "id") -> bool:
    with Session(engine) as session:
        entry = _find(session, collection, key, record_key)
        if entry is None:
            return False
        session.delete(entry)
        session.commit()
        return True


__all__ = [
    "LedgerEntry",
    "create_db_and_tables",
    "delete_entry",
    "engine",
    "entry_document",
    "insert_entry",
    "list_entries",
    "new_entry_id",
    "update_entry",
]
