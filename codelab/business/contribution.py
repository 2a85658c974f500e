"""Shared contribution tables.

Languages and themes are singleton-per-id: the latest registration of an id
wins, earlier ones stay underneath it so that retracting an extension falls
back to the previous contributor, and finally to the built-in default.
Commands and status bar items are append-only sequences without dedup.

Every entry carries the id of the extension that contributed it, ``None``
for built-ins.
"""

__all__ = [
    "ContributionTables",
    "Contribution",
    "BUILTIN_LANGUAGES",
    "BUILTIN_THEMES",
]

import logging
import typing
from typing import Optional as Opt
from ..schemas.contribution import (
    LanguageDefinition, ThemeDefinition, CommandDefinition, StatusBarItem,
    Alignment,
)
from ..schemas.extension import ExtensionID


logger = logging.getLogger(__name__)

Definition: typing.TypeAlias = typing.Union[
    LanguageDefinition, ThemeDefinition, CommandDefinition, StatusBarItem
]


class Contribution(typing.NamedTuple):
    owner: Opt[ExtensionID]
    definition: Definition


BUILTIN_LANGUAGES = (
    LanguageDefinition(
        id="javascript", name="JavaScript", extensions=("js", "jsx", "mjs"),
        tokenizer={
            "keywords": r"\b(const|let|var|function|return|if|else|for|while|class|import|export|async|await|new|this)\b",
            "strings": r"([\"'`])(?:(?=(\\?))\2.)*?\1",
            "comments": r"(\/\/.*$|\/\*[\s\S]*?\*\/)",
            "numbers": r"\b\d+\.?\d*\b",
        },
        autocomplete=("function", "const", "let", "return", "async", "await", "console.log"),
    ),
    LanguageDefinition(
        id="typescript", name="TypeScript", extensions=("ts", "tsx"),
        tokenizer={
            "keywords": r"\b(const|let|function|return|interface|type|enum|implements|class|import|export|async|await)\b",
            "types": r"\b(string|number|boolean|any|void|never|unknown)\b",
            "strings": r"([\"'`])(?:(?=(\\?))\2.)*?\1",
            "comments": r"(\/\/.*$|\/\*[\s\S]*?\*\/)",
        },
        autocomplete=("interface", "type", "enum", "implements", "readonly"),
    ),
    LanguageDefinition(
        id="html", name="HTML", extensions=("html", "htm"),
        tokenizer={
            "tags": r"<\/?[\w-]+",
            "attributes": r"\b[\w-]+(?==)",
            "strings": r"\"[^\"]*\"",
            "comments": r"<!--[\s\S]*?-->",
        },
    ),
    LanguageDefinition(
        id="css", name="CSS", extensions=("css", "scss"),
        tokenizer={
            "selectors": r"[.#]?[\w-]+(?=\s*\{)",
            "properties": r"[\w-]+(?=\s*:)",
            "comments": r"\/\*[\s\S]*?\*\/",
        },
    ),
)

BUILTIN_THEMES = (
    ThemeDefinition(
        id="cyberpunk", name="Cyberpunk", type="dark",
        colors={
            "background": "#0a0e27", "surface": "#151934", "surfaceAlt": "#1e2447",
            "text": "#e0e6ff", "textSecondary": "#8b93c7", "border": "#2a3158",
            "primary": "#00f0ff", "success": "#00ff9f", "error": "#ff2a6d",
            "warning": "#ffd700", "menuHover": "#252b52", "keyword": "#ff2a6d",
            "string": "#00ff9f", "comment": "#5a6399", "function": "#00f0ff",
            "number": "#ffd700",
        },
    ),
    ThemeDefinition(
        id="github-dark", name="GitHub Dark", type="dark",
        colors={
            "background": "#0d1117", "surface": "#161b22", "surfaceAlt": "#21262d",
            "text": "#c9d1d9", "textSecondary": "#8b949e", "border": "#30363d",
            "primary": "#58a6ff", "success": "#3fb950", "error": "#f85149",
            "warning": "#d29922", "menuHover": "#2d333b", "keyword": "#ff7b72",
            "string": "#a5d6ff", "comment": "#8b949e", "function": "#d2a8ff",
            "number": "#79c0ff",
        },
    ),
)


class ContributionTables:
    """Languages, themes, commands and status bar items of the host.

    Only the capability API writes here.
    """

    def __init__(
        self,
        builtin_languages: typing.Iterable[LanguageDefinition] = BUILTIN_LANGUAGES,
        builtin_themes: typing.Iterable[ThemeDefinition] = BUILTIN_THEMES,
    ):
        self._languages: dict[str, list[Contribution]] = {}
        self._themes: dict[str, list[Contribution]] = {}
        self._commands: list[Contribution] = []
        self._status_bar_items: list[Contribution] = []

        for language in builtin_languages:
            self._languages[language.id] = [Contribution(None, language)]
        for theme in builtin_themes:
            self._themes[theme.id] = [Contribution(None, theme)]

    # writes

    def add_language(self, definition: LanguageDefinition, owner: Opt[ExtensionID] = None):
        self._push(self._languages, "language", definition, owner)

    def add_theme(self, definition: ThemeDefinition, owner: Opt[ExtensionID] = None):
        self._push(self._themes, "theme", definition, owner)

    def add_command(self, definition: CommandDefinition, owner: Opt[ExtensionID] = None):
        self._append(self._commands, "command", definition, owner)

    def add_status_bar_item(self, definition: StatusBarItem, owner: Opt[ExtensionID] = None):
        self._append(self._status_bar_items, "status bar item", definition, owner)

    def retract(self, owner: ExtensionID) -> int:
        """Remove every entry contributed by ``owner``.

        Languages and themes fall back to the most recent remaining
        contribution of the same id. Built-in entries are never retracted.

        :return: Number of entries removed.
        """
        removed = 0
        for table in (self._languages, self._themes):
            for key in tuple(table):
                stack = table[key]
                kept = [entry for entry in stack if entry.owner != owner]
                removed += len(stack) - len(kept)
                if kept:
                    table[key] = kept
                else:
                    del table[key]
        for sequence in (self._commands, self._status_bar_items):
            kept = [entry for entry in sequence if entry.owner != owner]
            removed += len(sequence) - len(kept)
            sequence[:] = kept
        if removed:
            logger.info("Retracted %d contribution(s) of %s", removed, owner)
        return removed

    # reads

    def get_language(self, language_id: str) -> Opt[LanguageDefinition]:
        stack = self._languages.get(language_id)
        return stack[-1].definition if stack else None

    def get_theme(self, theme_id: str) -> Opt[ThemeDefinition]:
        stack = self._themes.get(theme_id)
        return stack[-1].definition if stack else None

    @property
    def languages(self) -> dict[str, LanguageDefinition]:
        return {key: stack[-1].definition for key, stack in self._languages.items()}

    @property
    def themes(self) -> dict[str, ThemeDefinition]:
        return {key: stack[-1].definition for key, stack in self._themes.items()}

    @property
    def commands(self) -> tuple[CommandDefinition, ...]:
        return tuple(entry.definition for entry in self._commands)

    @property
    def status_bar_items(self) -> tuple[StatusBarItem, ...]:
        return tuple(entry.definition for entry in self._status_bar_items)

    def find_commands(self, command_id: str) -> tuple[CommandDefinition, ...]:
        """All commands registered under ``command_id``, in registration order."""
        return tuple(
            entry.definition for entry in self._commands
            if entry.definition.id == command_id
        )

    def language_for_file(self, filename: str) -> Opt[LanguageDefinition]:
        """Language whose file extensions match ``filename``.

        Later registrations are preferred over earlier ones.
        """
        if "." not in filename:
            return None
        suffix = filename.rsplit(".", 1)[1].lower()
        for stack in reversed(tuple(self._languages.values())):
            definition = stack[-1].definition
            if suffix in definition.extensions:
                return definition
        return None

    def sorted_status_bar_items(self, alignment: Alignment) -> tuple[StatusBarItem, ...]:
        """Items of one side of the status bar, highest priority first."""
        return tuple(sorted(
            (item for item in self.status_bar_items if item.alignment == alignment),
            key=lambda item: item.priority,
            reverse=True,
        ))

    def owners_of(self, owner: ExtensionID) -> dict[str, tuple[str, ...]]:
        """Ids of everything ``owner`` currently contributes, per table."""
        return {
            "languages": tuple(
                key for key, stack in self._languages.items()
                if any(entry.owner == owner for entry in stack)
            ),
            "themes": tuple(
                key for key, stack in self._themes.items()
                if any(entry.owner == owner for entry in stack)
            ),
            "commands": tuple(
                entry.definition.id for entry in self._commands if entry.owner == owner
            ),
            "status_bar_items": tuple(
                entry.definition.id for entry in self._status_bar_items if entry.owner == owner
            ),
        }

    def _push(self, table: dict, kind: str, definition, owner: Opt[ExtensionID]):
        stack = table.setdefault(definition.id, [])
        if stack:
            logger.warning(
                "DuplicateContribution: %s %r from %s overrides the one from %s",
                kind, definition.id, owner or "built-in", stack[-1].owner or "built-in",
                extra={"extension_id": owner},
            )
        stack.append(Contribution(owner, definition))

    def _append(self, sequence: list, kind: str, definition, owner: Opt[ExtensionID]):
        if any(entry.definition.id == definition.id for entry in sequence):
            logger.warning(
                "DuplicateContribution: %s %r from %s is registered more than once",
                kind, definition.id, owner or "built-in",
                extra={"extension_id": owner},
            )
        sequence.append(Contribution(owner, definition))
