"""Operator prompts for choosing a template."""

from collections.abc import Callable, Sequence
from typing import Protocol

import structlog

from todoi.models import Task

logger = structlog.get_logger()


class TemplatePrompt(Protocol):
    """Asks the operator which template to use for a task."""

    def choose(self, task: Task, template_names: Sequence[str]) -> str | None:
        """Return the chosen template name, or None to skip the task."""
        ...


class ConsolePrompt:
    """Interactive prompt on stdin/stdout.

    Answering "s" skips the current task. Answering "c" skips it and every
    remaining task that would need a prompt in this run.
    """

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
    ) -> None:
        self.input = input_func
        self.output = output_func
        self.cancelled = False

    def choose(self, task: Task, template_names: Sequence[str]) -> str | None:
        if self.cancelled:
            logger.debug("Prompting cancelled for the rest of the run", task_id=task.id)
            return None

        self.output(f"{task.title}")
        if task.url:
            self.output(f"  {task.url}")
        self.output("Please choose the template to use:")
        for i, name in enumerate(template_names):
            self.output(f"{i}: {name}")

        while True:
            try:
                answer = self.input("Choice (s to skip this task, c to cancel for all): ").strip()
            except (EOFError, KeyboardInterrupt):
                logger.info("Prompt aborted", task_id=task.id)
                self.cancelled = True
                return None

            if answer == "s":
                return None
            if answer == "c":
                self.cancelled = True
                return None
            if answer.isdigit() and int(answer) < len(template_names):
                return template_names[int(answer)]
            if answer in template_names:
                return answer
            self.output(f"Invalid choice: {answer!r}")
