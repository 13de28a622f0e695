"""
contacts/models.py -- Domain dataclass for an address-book entry.

Pure data container with zero logic. Persistence lives in contacts/store.py;
the HTTP shape lives in api/models.py. Neither layer leaks into this one.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Contact:
    """One entry in the address book.

    id is None before the record is written to the database.
    """

    name: str
    surname: str
    phone: str
    email: str
    address: str
    id: Optional[int] = None
