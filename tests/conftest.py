import os
import tempfile

# Settings are read at import time, so the environment is fixed before manuorder loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_ROOT"] = tempfile.mkdtemp(prefix="manuorder-uploads-")
os.environ["AWS_S3_BUCKET"] = ""
os.environ["SESSION_SECRET_KEY"] = "test-secret-key"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from manuorder.auth.models import SessionUser
from manuorder.auth.service import create_access_token
from manuorder.core.exceptions import NotFoundError
from manuorder.database.core import get_db
from manuorder.database.models import Base
from manuorder.files.storage import BlobStore, get_blob_store, key_from_reference, reference_for_key
from manuorder.main import app
from manuorder.orders.service import OrderService
from manuorder.users.models import UserRole

TEST_SQLALCHEMY_DATABASE_URL = "sqlite://"


class FakeBlobStore(BlobStore):
    """In-memory stand-in for S3."""
    backend = "fake"

    def __init__(self):
        self.objects = {}

    def put(self, data, file_name, content_type):
        reference = reference_for_key(f"uploads/{len(self.objects) + 1}-{file_name}")
        self.objects[reference] = (data, content_type)
        return reference

    def get_retrievable_url(self, reference):
        if reference not in self.objects:
            raise NotFoundError("File not found", context={"reference": reference})
        return f"https://blobs.example.test/{key_from_reference(reference)}?signature=test"


@pytest.fixture(scope="function")
def db_session():
    """
    Creates a new, isolated in-memory database session for each test.
    """
    engine = create_engine(
        TEST_SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def blob_store():
    return FakeBlobStore()


@pytest.fixture(scope="function")
def client(db_session, blob_store):
    """
    Creates a TestClient for the app, overriding the database and blob store.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_user():
    return SessionUser(user_id="admin-1", role=UserRole.ADMIN, name="Alice Admin", email="alice@example.com")


@pytest.fixture
def customer_user():
    return SessionUser(user_id="cust-1", role=UserRole.CUSTOMER, name="Carla Customer", email="carla@example.com")


@pytest.fixture
def other_customer():
    return SessionUser(user_id="cust-2", role=UserRole.CUSTOMER, name="Oscar Other", email="oscar@example.com")


def headers_for(user: SessionUser) -> dict:
    token = create_access_token(user.user_id, user.role, name=user.name, email=user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user):
    return headers_for(admin_user)


@pytest.fixture
def customer_headers(customer_user):
    return headers_for(customer_user)


@pytest.fixture
def other_headers(other_customer):
    return headers_for(other_customer)


@pytest.fixture
def make_order(db_session, customer_user):
    """Creates orders through the service, as the default customer unless told otherwise."""
    def _make_order(notes="Need 50 brackets", actor=None, design_files=()):
        return OrderService.create_order(db_session, actor or customer_user, notes, design_files)
    return _make_order
