"""Shared fixtures for parasight tests."""

import pytest

from parasight.config import Config
from parasight.storage.database import Database
from parasight.tagging.base import ClassificationFailed

from .fakes import FakeClassifier


@pytest.fixture
def config(tmp_path):
    return Config(database_path=tmp_path / "links.db")


@pytest.fixture
def db(config):
    return Database(config.database_path)


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def failing_classifier():
    return FakeClassifier(result=ClassificationFailed(reason="Malformed classifier output"))
