"""Unit tests for contacts/store.py and auth/store.py.

Covers:
- ContactStore create/get/replace/delete and paginated listing
- UserStore role seeding, user CRUD, role_name join, paginated listing
- Duplicate usernames raise IntegrityError
- Connections go back to the pool when a statement fails
"""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import DEFAULT_ROLES, UserStore
from contacts.models import Contact
from contacts.store import ContactStore
from core.collection import QuerySpec, SortOrder


def _contact(n: int) -> Contact:
    return Contact(
        name=f"Name{n:02d}",
        surname=f"Surname{30 - n:02d}",
        phone=f"+39 06 555 {n:04d}",
        email=f"person{n}@example.com",
        address=f"Via Roma {n}, Roma",
    )


# ---------------------------------------------------------------------------
# ContactStore
# ---------------------------------------------------------------------------


@pytest.fixture
def contacts():
    s = ContactStore("sqlite:///:memory:")
    yield s
    s.close()


class TestContactStore:
    def test_create_and_get(self, contacts: ContactStore) -> None:
        contact_id = contacts.create_contact(_contact(1))
        fetched = contacts.get_contact(contact_id)
        assert fetched is not None
        assert fetched.id == contact_id
        assert fetched.email == "person1@example.com"

    def test_get_missing(self, contacts: ContactStore) -> None:
        assert contacts.get_contact(999) is None

    def test_replace(self, contacts: ContactStore) -> None:
        contact_id = contacts.create_contact(_contact(1))
        assert contacts.replace_contact(contact_id, _contact(2)) is True
        assert contacts.get_contact(contact_id).name == "Name02"

    def test_replace_missing(self, contacts: ContactStore) -> None:
        assert contacts.replace_contact(999, _contact(1)) is False

    def test_delete(self, contacts: ContactStore) -> None:
        contact_id = contacts.create_contact(_contact(1))
        assert contacts.delete_contact(contact_id) is True
        assert contacts.get_contact(contact_id) is None
        assert contacts.delete_contact(contact_id) is False

    def test_list_pages_and_total(self, contacts: ContactStore) -> None:
        for n in range(1, 26):
            contacts.create_contact(_contact(n))
        page = contacts.list_contacts(QuerySpec(page=3, page_size=10))
        assert page.total == 25
        assert [c.name for c in page.rows] == [f"Name{n:02d}" for n in range(21, 26)]

    def test_list_sorted_by_surname_desc(self, contacts: ContactStore) -> None:
        for n in range(1, 6):
            contacts.create_contact(_contact(n))
        page = contacts.list_contacts(QuerySpec(page=1, page_size=10, sort_by="surname", order=SortOrder.desc))
        # surname counts down as n goes up, so descending surname is ascending n.
        assert [c.name for c in page.rows] == ["Name01", "Name02", "Name03", "Name04", "Name05"]

    def test_list_empty(self, contacts: ContactStore) -> None:
        page = contacts.list_contacts(QuerySpec())
        assert page.rows == []
        assert page.total == 0


# ---------------------------------------------------------------------------
# UserStore
# ---------------------------------------------------------------------------


@pytest.fixture
def users():
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


class TestUserStore:
    def test_roles_seeded(self, users: UserStore) -> None:
        assert [(r.id, r.name) for r in users.list_roles()] == list(DEFAULT_ROLES)
        assert users.get_role(1).name == "admin"
        assert users.get_role(99) is None

    def test_seeding_is_idempotent(self, users: UserStore) -> None:
        users._seed_roles()
        assert len(users.list_roles()) == len(DEFAULT_ROLES)

    def test_has_users(self, users: UserStore) -> None:
        assert users.has_users() is False
        users.create_user(User(username="admin", role_id=1, hashed_password="x"))
        assert users.has_users() is True

    def test_role_name_joined(self, users: UserStore) -> None:
        user_id = users.create_user(User(username="mario", role_id=2, hashed_password="x"))
        user = users.get_by_id(user_id)
        assert user.role_name == "user"
        assert users.get_by_username("mario").id == user_id
        assert users.get_by_username("Mario") is None

    def test_duplicate_username(self, users: UserStore) -> None:
        users.create_user(User(username="admin", role_id=1, hashed_password="x"))
        with pytest.raises(IntegrityError):
            users.create_user(User(username="admin", role_id=2, hashed_password="y"))
        # The failed insert must not have leaked its connection.
        assert users.get_by_username("admin").role_id == 1

    def test_replace_keeps_password_when_not_given(self, users: UserStore) -> None:
        user_id = users.create_user(User(username="luigi", role_id=2, hashed_password="old-hash"))
        assert users.replace_user(user_id, "luigi2", 1) is True
        user = users.get_by_id(user_id)
        assert (user.username, user.role_id, user.hashed_password) == ("luigi2", 1, "old-hash")

    def test_replace_sets_new_password(self, users: UserStore) -> None:
        user_id = users.create_user(User(username="luigi", role_id=2, hashed_password="old-hash"))
        users.replace_user(user_id, "luigi", 2, hashed_password="new-hash")
        assert users.get_by_id(user_id).hashed_password == "new-hash"

    def test_replace_and_delete_missing(self, users: UserStore) -> None:
        assert users.replace_user(404, "nobody", 1) is False
        assert users.delete_user(404) is False

    def test_list_users_sorted_by_username(self, users: UserStore) -> None:
        for name in ["carla", "anna", "bruno"]:
            users.create_user(User(username=name, role_id=2, hashed_password="x"))
        page = users.list_users(QuerySpec(page=1, page_size=2, sort_by="username"))
        assert [u.username for u in page.rows] == ["anna", "bruno"]
        assert page.total == 3
        assert all(u.role_name == "user" for u in page.rows)

    def test_ping(self, users: UserStore) -> None:
        assert users.ping() is True
