"""Utilities for ensuring string primary keys are populated."""
from __future__ import annotations

import uuid
from typing import Type

from sqlalchemy import event
from sqlalchemy.orm import Mapper


def new_id() -> str:
    return str(uuid.uuid4())


def register_string_pk_listener(model: Type[object], pk_name: str = "id") -> None:
    """Ensure ``model`` receives an opaque uuid4 primary key before insert.

    Rows are addressed by opaque string ids (the same kind of id the embedded
    documents use), so the identifier is synthesised client side when the
    caller did not provide one. Explicit ids are left untouched, which lets a
    shared discussion be created under an id chosen ahead of time.
    """

    table = getattr(model, "__table__", None)
    if table is None or pk_name not in table.c:
        raise ValueError(f"Model {model!r} does not expose a '{pk_name}' column")

    @event.listens_for(model, "before_insert", propagate=True)
    def _assign_string_pk(_: Mapper, connection, target) -> None:  # pragma: no cover - SQLAlchemy callback
        if getattr(target, pk_name):
            return
        setattr(target, pk_name, new_id())
