import os
import sys
from datetime import date, datetime, timedelta

import pytest

# Path setup before any project imports to satisfy E402
ROOT = os.path.dirname(__file__)
PARENT = os.path.abspath(os.path.join(ROOT, ".."))
if PARENT not in sys.path:  # pragma: no cover - environment dependent
    sys.path.insert(0, PARENT)


def _lazy_imports():  # isolate heavy imports & satisfy lint ordering
    from restoflow.app_factory import create_app  # noqa: E402
    from restoflow.db import create_all  # noqa: E402

    return create_app, create_all


@pytest.fixture(scope="session")
def app_session(tmp_path_factory):
    create_app, create_all = _lazy_imports()
    db_file = tmp_path_factory.mktemp("db") / "test_app.db"
    url = f"sqlite:///{db_file}"
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test",
            "database_url": url,
            "queue_backend": "sync",
            "reverb_app_key": None,
            "reverb_app_secret": None,
        }
    )
    with app.app_context():
        create_all()
    return app


@pytest.fixture
def app(app_session):
    return app_session


@pytest.fixture(autouse=True)
def _isolate_state(app_session):
    """Every test starts from empty tables, a sync queue and no realtime key."""
    from restoflow.audit_events import clear_audit_events
    from restoflow.db import get_new_session
    from restoflow.job_queue import configure_queue
    from restoflow.models import Base

    yield
    db = get_new_session()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
    finally:
        db.close()
    clear_audit_events()
    configure_queue("sync")
    app_session.config["REVERB_APP_KEY"] = None
    app_session.config["REVERB_APP_SECRET"] = None
    app_session.extensions["restoflow.config"].reverb_app_key = None
    app_session.extensions["restoflow.config"].reverb_app_secret = None


@pytest.fixture
def client(app_session):
    c = app_session.test_client()
    # Ensure clean base environ to avoid leakage of identity headers between tests
    c.environ_base = {}
    return c


@pytest.fixture
def db(app_session):
    from restoflow.db import get_new_session

    s = get_new_session()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def make_owner(db):
    """Create a restaurant owner (with restaurant) and return it."""
    from werkzeug.security import generate_password_hash

    from restoflow.models import RestaurantData, User

    counter = {"n": 0}

    def _make(email=None, password="secret-pass", **fields):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=fields.pop("name", f"Owner {n}"),
            first_name=fields.pop("first_name", "Olivia"),
            last_name=fields.pop("last_name", f"Owner{n}"),
            email=email or f"owner{n}@example.com",
            phonenumber=fields.pop("phonenumber", f"0700000{n:03d}"),
            address=fields.pop("address", f"{n} Harbour Street"),
            password_hash=generate_password_hash(password),
            **fields,
        )
        user.restaurant = RestaurantData(
            restaurant_name=f"Bistro {n}",
            address=f"{n} Market Square",
            contact_number=f"0800000{n:03d}",
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_employee(db):
    from werkzeug.security import generate_password_hash

    from restoflow.models import Employee
    from restoflow.roles import Role

    counter = {"n": 0}

    def _make(owner, role=Role.WAITER, email=None, password="secret-pass", **fields):
        counter["n"] += 1
        n = counter["n"]
        emp = Employee(
            user_id=owner.id,
            first_name=fields.pop("first_name", "Sam"),
            last_name=fields.pop("last_name", f"Staff{n}"),
            email=email or f"staff{n}@example.com",
            password_hash=generate_password_hash(password),
            role_id=int(role),
            **fields,
        )
        db.add(emp)
        db.commit()
        return emp

    return _make


@pytest.fixture
def make_subscription(db):
    from restoflow.models import UserSubscription

    def _make(owner, *, ends_in=timedelta(days=30), is_trial=False, status="active"):
        sub = UserSubscription(
            user_id=owner.id,
            plan_name="Trial" if is_trial else "Standard",
            subscription_start_date=date.today() - timedelta(days=1),
            subscription_end_date=datetime.now() + ends_in,
            remaining_days=max(ends_in.days, 0),
            is_trial=is_trial,
            subscription_status=status,
        )
        db.add(sub)
        db.commit()
        return sub

    return _make


@pytest.fixture
def realtime_keys(app_session):
    """Configure broker credentials for the duration of one test."""
    app_session.config["REVERB_APP_KEY"] = "app-key"
    app_session.config["REVERB_APP_SECRET"] = "app-secret"
    app_session.extensions["restoflow.config"].reverb_app_key = "app-key"
    app_session.extensions["restoflow.config"].reverb_app_secret = "app-secret"
    return "app-key", "app-secret"
