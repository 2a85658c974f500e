import logging

import pydantic
import pytest

from codelab.business.api import ExtensionAPI
from codelab.business.contribution import ContributionTables
from codelab.business.workspace import NotificationCenter, Workspace
from codelab.schemas.document import Severity
from codelab.schemas.extension import ExtensionContributes


@pytest.fixture
def tables():
    return ContributionTables()


@pytest.fixture
def workspace():
    return Workspace()


@pytest.fixture
def notifications():
    return NotificationCenter()


@pytest.fixture
def api(tables, workspace, notifications):
    return ExtensionAPI("sample", tables, workspace, notifications)


class TestRegistration:

    def test_direct_registration_is_owned(self, api, tables):
        api.register_language({"id": "demo-lang", "name": "DemoLang", "extensions": ["dl"]})
        assert tables.get_language("demo-lang").extensions == ("dl",)
        assert tables.owners_of("sample")["languages"] == ("demo-lang",)

    def test_accepts_models_and_dicts(self, api, tables):
        command = api.register_command({"id": "hello", "handler": lambda: "hi"})
        item = api.register_status_bar_item({"id": "clock", "text": "12:00", "onClick": lambda: None})
        assert tables.commands == (command,)
        assert tables.status_bar_items[0].on_click is not None
        assert item.id == "clock"

    def test_invalid_definition(self, api):
        with pytest.raises(pydantic.ValidationError):
            api.register_theme({"id": "no-name"})


class TestTransaction:

    def test_buffered_until_commit(self, api, tables):
        api.begin()
        api.register_theme({"id": "neon", "name": "Neon"})
        api.register_command({"id": "fmt"})
        assert tables.get_theme("neon") is None
        assert tables.commands == ()

        assert api.commit() == 2
        assert tables.get_theme("neon").name == "Neon"
        assert len(tables.commands) == 1

    def test_rollback_discards(self, api, tables):
        api.begin()
        api.register_theme({"id": "neon", "name": "Neon"})
        assert api.rollback() == 1
        assert tables.get_theme("neon") is None

        api.register_theme({"id": "neon", "name": "Later"})
        assert tables.get_theme("neon").name == "Later"

    def test_begin_twice(self, api):
        api.begin()
        with pytest.raises(RuntimeError):
            api.begin()

    def test_closed_api_drops_registrations(self, api, tables, caplog):
        api.begin()
        api.register_theme({"id": "neon", "name": "Neon"})
        api.close()
        assert api.closed

        with caplog.at_level(logging.WARNING, logger="codelab.business.api"):
            api.register_theme({"id": "ghost", "name": "Ghost"})
            api.register_command({"id": "zombie"})

        assert tables.get_theme("neon") is None
        assert tables.get_theme("ghost") is None
        assert tables.commands == ()
        assert tables.owners_of("sample")["themes"] == ()
        assert "no longer active" in caplog.text

    def test_apply_contributes(self, api, tables):
        contributes = ExtensionContributes.model_validate({
            "languages": [{"id": "demo", "name": "Demo"}],
            "statusBarItems": [{"id": "clock", "text": "12:00"}],
        })
        api.begin()
        api.apply_contributes(contributes)
        api.commit()
        assert tables.get_language("demo").name == "Demo"
        assert tables.status_bar_items[0].id == "clock"


class TestEditor:

    def test_notification(self, api, notifications):
        api.show_notification("Hello", "success")
        last = notifications.last
        assert (last.message, last.severity, last.extension_id) == ("Hello", Severity.SUCCESS, "sample")
        assert last.kind is None

    def test_bad_severity(self, api):
        with pytest.raises(ValueError):
            api.show_notification("Hello", "loud")

    def test_no_active_document(self, api):
        assert api.get_active_document() is None
        assert api.update_active_document("x") is False

    def test_update_active_document(self, api, workspace):
        document = workspace.open("welcome.js", "let a = 1")
        fetched = api.get_active_document()
        assert fetched.content == "let a = 1"
        assert fetched.has_unsaved_changes is False

        assert api.update_active_document("let a = 2") is True
        updated = workspace.get(document.id)
        assert updated.content == "let a = 2"
        assert updated.has_unsaved_changes is True

    def test_returned_document_is_a_copy(self, api, workspace):
        workspace.open("welcome.js", "original")
        api.get_active_document().content = "mutated"
        assert api.get_active_document().content == "original"


class TestWorkspace:

    def test_focus_and_close(self, workspace):
        first = workspace.open("a.js")
        second = workspace.open("b.css", language="css")
        assert workspace.get_active().id == second.id

        workspace.focus(first.id)
        assert workspace.get_active().id == first.id
        workspace.close(first.id)
        assert workspace.get_active().id == second.id
        assert [document.name for document in workspace.documents] == ["b.css"]

        with pytest.raises(KeyError):
            workspace.focus(first.id)

    def test_notification_history_is_bounded(self):
        center = NotificationCenter(max_history=2)
        for i in range(3):
            center.notify(f"n{i}")
        assert [n.message for n in center.history] == ["n1", "n2"]
        center.notify("failed", Severity.ERROR, kind="FetchFailure")
        assert [n.message for n in center.of_kind("FetchFailure")] == ["failed"]
