"""Tests for the console template prompt."""

from collections.abc import Callable, Iterable

import pytest

from todoi.models import Task
from todoi.prompt import ConsolePrompt

NAMES = ["article", "podcast", "recipe"]


def scripted(answers: Iterable[str]) -> Callable[[str], str]:
    """Return an input function replaying answers."""
    iterator = iter(answers)

    def read(prompt: str) -> str:
        try:
            return next(iterator)
        except StopIteration:
            raise EOFError from None

    return read


@pytest.fixture
def task() -> Task:
    """Create a task needing a template choice."""
    return Task(id="1", title="Soup recipe", url="https://example.com/soup")


def test_choose_by_number(task: Task) -> None:
    """Test choosing a template by its index."""
    output: list[str] = []
    prompt = ConsolePrompt(scripted(["2"]), output.append)
    assert prompt.choose(task, NAMES) == "recipe"
    assert "0: article" in output
    assert "Soup recipe" in output


def test_choose_by_name(task: Task) -> None:
    """Test choosing a template by its name."""
    prompt = ConsolePrompt(scripted(["podcast"]), lambda line: None)
    assert prompt.choose(task, NAMES) == "podcast"


def test_invalid_answer_asks_again(task: Task) -> None:
    """Test that invalid answers are rejected until a valid one is given."""
    output: list[str] = []
    prompt = ConsolePrompt(scripted(["7", "nope", "0"]), output.append)
    assert prompt.choose(task, NAMES) == "article"
    assert "Invalid choice: '7'" in output
    assert "Invalid choice: 'nope'" in output


def test_skip_only_current_task(task: Task) -> None:
    """Test that "s" skips one task and keeps prompting afterwards."""
    prompt = ConsolePrompt(scripted(["s", "1"]), lambda line: None)
    assert prompt.choose(task, NAMES) is None
    assert prompt.choose(task, NAMES) == "podcast"


def test_cancel_for_all(task: Task) -> None:
    """Test that "c" skips every following prompt without asking."""
    asked: list[str] = []

    def read(text: str) -> str:
        asked.append(text)
        return "c"

    prompt = ConsolePrompt(read, lambda line: None)
    assert prompt.choose(task, NAMES) is None
    assert prompt.choose(task, NAMES) is None
    assert len(asked) == 1


def test_end_of_input_cancels(task: Task) -> None:
    """Test that closing stdin cancels the choice."""
    prompt = ConsolePrompt(scripted([]), lambda line: None)
    assert prompt.choose(task, NAMES) is None
    assert prompt.cancelled
