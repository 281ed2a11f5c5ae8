"""Tab completion for the ChannelVault REPL."""

from pathlib import Path
from typing import Callable, Iterable, Sequence

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS, FILE_ARGUMENT_COMMANDS, SETTING_KEYS

ArgumentCompleter = Callable[[str, Sequence[str]], Iterable[str]]


def local_paths(word: str, previous: Sequence[str]) -> Iterable[str]:
    """
    Paths under the working directory matching word.

    Directories end with a slash so completion can continue into them.
    Hidden entries and files already on the line are skipped.
    """
    directory, _, stem = word.rpartition("/")
    base = Path.cwd() / directory if directory else Path.cwd()
    if not base.is_dir():
        return

    prefix = f"{directory}/" if directory else ""
    for entry in sorted(base.iterdir()):
        if entry.name.startswith(".") or not entry.name.startswith(stem):
            continue
        candidate = prefix + entry.name
        if entry.is_dir():
            yield candidate + "/"
        elif candidate not in previous:
            yield candidate


def setting_assignments(word: str, previous: Sequence[str]) -> Iterable[str]:
    if "=" in word:
        return
    assigned = {arg.partition("=")[0] for arg in previous}
    for key in SETTING_KEYS:
        if key.startswith(word) and key not in assigned:
            yield f"{key}="


def fetch_flags(word: str, previous: Sequence[str]) -> Iterable[str]:
    if word.startswith("-") and "--chunked" not in previous and "--chunked".startswith(word):
        yield "--chunked"


ARGUMENT_COMPLETERS: dict[str, ArgumentCompleter] = {
    **{command: local_paths for command in FILE_ARGUMENT_COMMANDS},
    "settings": setting_assignments,
    "fetch": fetch_flags,
}


class VaultCompleter(Completer):
    """Completes command names, then command arguments where a completer exists."""

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        text = document.text_before_cursor
        words = text.split()
        if text.endswith(" ") or not words:
            words.append("")

        word = words[-1]
        if len(words) == 1:
            candidates = (name for name in COMMANDS if name.startswith(word.lower()))
        else:
            complete_argument = ARGUMENT_COMPLETERS.get(words[0].lower())
            if complete_argument is None:
                return
            candidates = complete_argument(word, words[1:-1])

        for candidate in candidates:
            yield Completion(candidate, start_position=-len(word))
