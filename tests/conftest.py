"""
Pytest configuration and fixtures for ProcureHub API tests.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.limiter import limiter
from app.main import app
from app.models.brfq import BRFQ, RequestItem
from app.models.approver import Approver
from app.models.supplier import Supplier
from app.models.user import User
from app.models.workflow_template import ApprovalWorkflowTemplate, ApprovalStepTemplate
from app.auth import get_password_hash, create_access_token
from app.services.notifications import EmailNotifier, get_notifier

# Disable rate limiting for tests
limiter.enabled = False

# Use in-memory SQLite for tests with shared connection
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Global session for sharing across requests
_test_session = None


def get_test_db():
    """Get the shared test database session."""
    global _test_session
    try:
        yield _test_session
    finally:
        pass


class RecordingNotifier(EmailNotifier):
    """Notifier that records messages instead of sending them."""

    def __init__(self):
        super().__init__()
        self.sent = []
        self.fail_for = set()

    def send(self, to, subject, html):
        self.sent.append({"to": to, "subject": subject, "html": html})
        return to not in self.fail_for

    def recipients(self):
        return [m["to"] for m in self.sent]


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    global _test_session

    Base.metadata.create_all(bind=engine)
    _test_session = TestingSessionLocal()
    app.dependency_overrides[get_db] = get_test_db

    yield _test_session

    app.dependency_overrides.clear()
    _test_session.close()
    _test_session = None

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def notifier(db):
    """Capture outgoing email for the duration of a test."""
    recorder = RecordingNotifier()
    app.dependency_overrides[get_notifier] = lambda: recorder
    return recorder


@pytest.fixture(scope="function")
def client(db, notifier):
    """Create a test client."""
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="function")
def test_user(db):
    """Create a test user."""
    user = User(
        email="test@example.com",
        hashed_password=get_password_hash("testpassword123"),
        display_name="Test User",
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def auth_token(test_user):
    """Get an auth token for the test user."""
    return create_access_token({"sub": str(test_user.id)})


@pytest.fixture(scope="function")
def auth_headers(auth_token):
    """Get auth headers for the test user."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture(scope="function")
def approvers(db):
    """Alice (Manager) and Bob (Finance)."""
    alice = Approver(name="Alice", email="alice@x.com", role="Manager")
    bob = Approver(name="Bob", email="bob@x.com", role="Finance")
    db.add_all([alice, bob])
    db.commit()
    return {"alice": alice, "bob": bob}


@pytest.fixture(scope="function")
def master_template(db):
    """Two-step master workflow: Manager (Alice) then Finance (Bob)."""
    template = ApprovalWorkflowTemplate(name="Master Workflow")
    template.steps = [
        ApprovalStepTemplate(order=1, role="Manager", approver_name="Alice"),
        ApprovalStepTemplate(order=2, role="Finance", approver_name="Bob", sla_duration="24 hrs"),
    ]
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


@pytest.fixture(scope="function")
def three_step_template(db, approvers):
    """Manager (Alice), Finance (Bob), then Director (Carol)."""
    db.add(Approver(name="Carol", email="carol@x.com", role="Director"))
    template = ApprovalWorkflowTemplate(name="Master Workflow")
    template.steps = [
        ApprovalStepTemplate(order=1, role="Manager", approver_name="Alice"),
        ApprovalStepTemplate(order=2, role="Finance", approver_name="Bob"),
        ApprovalStepTemplate(order=3, role="Director", approver_name="Carol"),
    ]
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


@pytest.fixture(scope="function")
def login_as(db):
    """Factory: create a user with the given email and return Bearer headers for it."""
    def _login_as(email):
        user = User(
            email=email,
            hashed_password=get_password_hash("testpassword123"),
            display_name=email.split("@")[0],
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}
    return _login_as


@pytest.fixture(scope="function")
def suppliers(db):
    """Two suppliers with an email and one without."""
    acme = Supplier(company_name="Acme", registration_email="sales@acme.com")
    globex = Supplier(company_name="Globex", registration_email="rfq@globex.com")
    silent = Supplier(company_name="Silent", registration_email=None)
    db.add_all([acme, globex, silent])
    db.commit()
    return {"acme": acme, "globex": globex, "silent": silent}


@pytest.fixture(scope="function")
def brfq(db, suppliers):
    """A BRFQ pending approval, selecting Acme by id, Globex by object and one direct email."""
    rfq = BRFQ(
        rfq_id="RFQ-001",
        title="Office chairs",
        status="draft",
        approval_status="pending",
        currency="USD",
        notes_to_supplier="Ergonomic only",
        suppliers_selected=[str(suppliers["acme"].id), "direct@vendor.com", {"id": suppliers["globex"].id}],
    )
    rfq.items = [
        RequestItem(description="Chair", uom="EA", quantity=10),
        RequestItem(description="Armrest", uom="EA", quantity=20),
    ]
    db.add(rfq)
    db.commit()
    db.refresh(rfq)
    return rfq
