"""
contacts/store.py -- SQLAlchemy-backed persistence layer for the address book.

Uses SQLAlchemy Core (not ORM) so the Contact dataclass in contacts/models.py
remains the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. ContactStore is the repository;
_row_to_contact is the mapper. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL. Listing
sorts only by columns in CONTACT_SORT_COLUMNS.

Usage:
    store = ContactStore("sqlite:///:memory:")
    contact_id = store.create_contact(contact)
    page = store.list_contacts(QuerySpec(page=2, page_size=10, sort_by="surname"))
    store.replace_contact(contact_id, updated)
    store.delete_contact(contact_id)
    store.close()
"""

from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, select
from sqlalchemy.engine import Engine

from contacts.models import Contact
from core.collection import CollectionPage, QuerySpec, fetch_page
from core.database import create_store_engine

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_contacts = Table(
    "contacts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("surname", String(255), nullable=False),
    Column("phone", String(50), nullable=False),
    Column("email", String(255), nullable=False),
    Column("address", String(500), nullable=False),
)

CONTACT_SORT_COLUMNS = {
    "id": _contacts.c.id,
    "name": _contacts.c.name,
    "surname": _contacts.c.surname,
    "phone": _contacts.c.phone,
    "email": _contacts.c.email,
    "address": _contacts.c.address,
}


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ContactStore:
    def __init__(self, db_url: str, **engine_options) -> None:
        self.engine: Engine = create_store_engine(db_url, **engine_options)
        metadata.create_all(self.engine)

    def create_contact(self, contact: Contact) -> int:
        """Insert a new contact and return its assigned database ID."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _contacts.insert().values(
                    name=contact.name,
                    surname=contact.surname,
                    phone=contact.phone,
                    email=contact.email,
                    address=contact.address,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_contact(self, contact_id: int) -> Optional[Contact]:
        """Fetch a single contact by ID. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_contacts.select().where(_contacts.c.id == contact_id)).fetchone()
        return _row_to_contact(row) if row is not None else None

    def list_contacts(self, spec: QuerySpec) -> CollectionPage:
        """Return one page of contacts and the total number of contacts."""
        with self.engine.connect() as conn:
            page = fetch_page(conn, select(_contacts), spec, CONTACT_SORT_COLUMNS, tiebreaker=_contacts.c.id)
        return CollectionPage(rows=[_row_to_contact(r) for r in page.rows], total=page.total)

    def replace_contact(self, contact_id: int, contact: Contact) -> bool:
        """Overwrite every field of an existing contact.

        Returns True if a row was updated, False if contact_id was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _contacts.update()
                .where(_contacts.c.id == contact_id)
                .values(
                    name=contact.name,
                    surname=contact.surname,
                    phone=contact.phone,
                    email=contact.email,
                    address=contact.address,
                )
            )
            conn.commit()
        return result.rowcount > 0

    def delete_contact(self, contact_id: int) -> bool:
        """Permanently delete a contact. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_contacts.delete().where(_contacts.c.id == contact_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern -- DB row -> domain dataclass)
# ---------------------------------------------------------------------------


def _row_to_contact(row) -> Contact:
    return Contact(
        id=row.id,
        name=row.name,
        surname=row.surname,
        phone=row.phone,
        email=row.email,
        address=row.address,
    )
