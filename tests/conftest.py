# ============================================================
# IMPORTS
# ============================================================

import pytest

from app import create_app
from extensions import db  # type: ignore


# ============================================================
# PYTEST FIXTURES
# ============================================================

@pytest.fixture
def app():
    """
    Application bound to an in-memory sqlite database.
    Tables are created fresh for every test.
    """
    application = create_app("testing")
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


