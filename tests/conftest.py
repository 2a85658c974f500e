"""Shared fixtures: an isolated database, store and extension manager per test."""

import pytest
import sqlmodel

from codelab.business.extension import ExtensionManager
from codelab.business.store import ExtensionStore
from codelab.engine import create_tables


@pytest.fixture
def engine(tmp_path):
    engine = sqlmodel.create_engine(f"sqlite:///{tmp_path / 'codelab_test.db'}")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return ExtensionStore(storage_key="codelab.extensions", engine=engine)


@pytest.fixture
def manager(store):
    return ExtensionManager(store=store, builtins=("prettier", "markdown"))
