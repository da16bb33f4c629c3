import sys
import os

# Ensure project root is on sys.path so tests can import the `workspace_hub` package
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# Settings are cached on first import, so these must be set before anything
# from workspace_hub is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["AUTH_EVENTS_BACKEND"] = "memory"
os.environ["ROOT_DOMAIN"] = "example.com"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from dataclasses import dataclass  # noqa: E402
from datetime import timedelta  # noqa: E402
from typing import Dict  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from workspace_hub.core.security import create_access_token, get_password_hash, new_session_id  # noqa: E402
from workspace_hub.database import Base, SessionLocal, engine  # noqa: E402
from workspace_hub.models import Membership, Project, Tenant, TenantRole, User  # noqa: E402

PASSWORD = "correct-horse-battery"


@dataclass
class Seed:
    """Ids of the rows every API test starts from."""
    acme_id: str
    globex_id: str
    owner_id: str
    admin_id: str
    member_id: str
    outsider_id: str
    acme_project_id: str
    globex_project_id: str


def make_token(user_id: str, email: str, session_id: str = None) -> str:
    return create_access_token(
        {"sub": user_id, "email": email, "sid": session_id or new_session_id()},
        expires_delta=timedelta(minutes=5)
    )


def auth_headers(user_id: str, email: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, email)}"}


@pytest.fixture(autouse=True)
def tables():
    import workspace_hub.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def password_hash():
    # bcrypt is slow; hash once for the whole run
    return get_password_hash(PASSWORD)


@pytest.fixture
def seed(db, password_hash) -> Seed:
    """
    Two tenants and four users:

    - owner@acme.com: owner of acme
    - admin@acme.com: admin of acme
    - member@acme.com: member of acme
    - outsider@globex.com: owner of globex, not in acme
    """
    acme = Tenant(name="Acme Corp", slug="acme")
    globex = Tenant(name="Globex", slug="globex")
    owner = User(email="owner@acme.com", hashed_password=password_hash, full_name="Olive Owner")
    admin = User(email="admin@acme.com", hashed_password=password_hash, full_name="Adam Admin")
    member = User(email="member@acme.com", hashed_password=password_hash, full_name="Mia Member")
    outsider = User(email="outsider@globex.com", hashed_password=password_hash)
    db.add_all([acme, globex, owner, admin, member, outsider])
    db.flush()

    db.add_all([
        Membership(tenant_id=acme.id, user_id=owner.id, role=TenantRole.OWNER),
        Membership(tenant_id=acme.id, user_id=admin.id, role=TenantRole.ADMIN),
        Membership(tenant_id=acme.id, user_id=member.id, role=TenantRole.MEMBER),
        Membership(tenant_id=globex.id, user_id=outsider.id, role=TenantRole.OWNER),
    ])

    acme_project = Project(tenant_id=acme.id, created_by=owner.id, name="Acme Launch")
    globex_project = Project(tenant_id=globex.id, created_by=outsider.id, name="Globex Secret Plan")
    db.add_all([acme_project, globex_project])
    db.commit()

    return Seed(
        acme_id=acme.id,
        globex_id=globex.id,
        owner_id=owner.id,
        admin_id=admin.id,
        member_id=member.id,
        outsider_id=outsider.id,
        acme_project_id=acme_project.id,
        globex_project_id=globex_project.id,
    )


@pytest.fixture
def app():
    from workspace_hub.main import app as application
    return application


@pytest.fixture
def client(app):
    """Client on the acme tenant host that never follows redirects."""
    return TestClient(app, base_url="http://acme.example.com", follow_redirects=False)


@pytest.fixture
def root_client(app):
    """Client on the bare root domain (no tenant)."""
    return TestClient(app, base_url="http://example.com", follow_redirects=False)


@pytest.fixture
def owner_headers(seed):
    return auth_headers(seed.owner_id, "owner@acme.com")


@pytest.fixture
def admin_headers(seed):
    return auth_headers(seed.admin_id, "admin@acme.com")


@pytest.fixture
def member_headers(seed):
    return auth_headers(seed.member_id, "member@acme.com")


@pytest.fixture
def outsider_headers(seed):
    return auth_headers(seed.outsider_id, "outsider@globex.com")
