import logging

from codelab.business.contribution import ContributionTables
from codelab.schemas.contribution import (
    Alignment, CommandDefinition, LanguageDefinition, StatusBarItem, ThemeDefinition,
)


def theme(theme_id: str, name: str) -> ThemeDefinition:
    return ThemeDefinition(id=theme_id, name=name)


class TestBuiltins:

    def test_defaults_present(self):
        tables = ContributionTables()
        assert set(tables.languages) == {"javascript", "typescript", "html", "css"}
        assert set(tables.themes) == {"cyberpunk", "github-dark"}
        assert tables.commands == ()
        assert tables.status_bar_items == ()

    def test_builtins_never_retracted(self):
        tables = ContributionTables()
        tables.retract("anyone")
        assert tables.get_theme("cyberpunk").name == "Cyberpunk"


class TestSingletonTables:

    def test_last_write_wins(self):
        tables = ContributionTables()
        tables.add_theme(theme("neon", "Neon A"), owner="a")
        tables.add_theme(theme("neon", "Neon B"), owner="b")
        assert tables.get_theme("neon").name == "Neon B"
        assert len([key for key in tables.themes if key == "neon"]) == 1

    def test_retract_falls_back_to_previous_contributor(self):
        tables = ContributionTables()
        tables.add_theme(theme("neon", "Neon A"), owner="a")
        tables.add_theme(theme("neon", "Neon B"), owner="b")

        assert tables.retract("b") == 1
        assert tables.get_theme("neon").name == "Neon A"
        tables.retract("a")
        assert tables.get_theme("neon") is None

    def test_retract_falls_back_to_builtin(self):
        tables = ContributionTables()
        tables.add_language(LanguageDefinition(id="javascript", name="JS++"), owner="a")
        assert tables.get_language("javascript").name == "JS++"
        tables.retract("a")
        assert tables.get_language("javascript").name == "JavaScript"

    def test_override_logs_duplicate(self, caplog):
        tables = ContributionTables()
        with caplog.at_level(logging.WARNING, logger="codelab.business.contribution"):
            tables.add_theme(theme("cyberpunk", "Mine"), owner="a")
        assert "DuplicateContribution" in caplog.text
        assert "built-in" in caplog.text

    def test_language_for_file(self):
        tables = ContributionTables()
        assert tables.language_for_file("main.mjs").id == "javascript"
        assert tables.language_for_file("README") is None
        tables.add_language(LanguageDefinition(id="jsx-pro", name="JSX Pro", extensions=("jsx",)), owner="a")
        assert tables.language_for_file("App.JSX").id == "jsx-pro"


class TestListTables:

    def test_commands_are_not_deduplicated(self, caplog):
        tables = ContributionTables()
        first = CommandDefinition(id="fmt", handler=lambda: "a")
        second = CommandDefinition(id="fmt", handler=lambda: "b")
        tables.add_command(first, owner="a")
        with caplog.at_level(logging.WARNING, logger="codelab.business.contribution"):
            tables.add_command(second, owner="b")

        assert tables.commands == (first, second)
        assert [command.handler() for command in tables.find_commands("fmt")] == ["a", "b"]
        assert "DuplicateContribution" in caplog.text

    def test_retract_only_owned_entries(self):
        tables = ContributionTables()
        tables.add_command(CommandDefinition(id="fmt"), owner="a")
        tables.add_command(CommandDefinition(id="fmt"), owner="b")
        tables.add_status_bar_item(StatusBarItem(id="clock", text="12:00"), owner="a")

        assert tables.retract("a") == 2
        assert len(tables.commands) == 1
        assert tables.status_bar_items == ()
        assert tables.owners_of("b")["commands"] == ("fmt",)

    def test_status_bar_ordering(self):
        tables = ContributionTables()
        tables.add_status_bar_item(StatusBarItem(id="low", text="l", alignment="right", priority=1))
        tables.add_status_bar_item(StatusBarItem(id="high", text="h", alignment="right", priority=90))
        tables.add_status_bar_item(StatusBarItem(id="left", text="x"))

        right = tables.sorted_status_bar_items(Alignment.RIGHT)
        assert [item.id for item in right] == ["high", "low"]
        assert [item.id for item in tables.sorted_status_bar_items(Alignment.LEFT)] == ["left"]

    def test_owners_of(self):
        tables = ContributionTables()
        tables.add_theme(theme("neon", "Neon"), owner="a")
        tables.add_language(LanguageDefinition(id="demo", name="Demo"), owner="a")
        owned = tables.owners_of("a")
        assert owned["themes"] == ("neon",)
        assert owned["languages"] == ("demo",)
        assert owned["commands"] == ()
