from unittest import mock

import pytest

from token_deployer.services.app import construct_flask_app
from token_deployer.session import OrchestrationSession, SessionState


@pytest.fixture
def session():
    session = mock.Mock(spec=OrchestrationSession)
    session.state = SessionState()
    return session


@pytest.fixture
def app(session):
    return construct_flask_app(session, test_config={"TESTING": True})


@pytest.fixture
def client(app):
    return app.test_client()
