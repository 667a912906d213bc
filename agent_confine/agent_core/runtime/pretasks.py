"""Pre-tasks: isolated side conversations run before the first turn.

Each pre-task gets a private history (its own system prompt plus an initial
user input) and is driven by the same ``ConversationLoop`` as the primary
conversation. A tool-free answer only completes the task when it contains the
task's done marker. The private history is discarded afterwards; nothing is
merged into the primary conversation.
"""

from typing import Optional, Sequence

from agent_confine.core.logging_config import get_logger

from ..config import DEFAULT_MAX_TURNS
from ..errors import (
    EmptyResponseError,
    MaxTurnsExceededError,
    PreTaskError,
    ToolCancelledError,
)
from ..hooks import ConversationObserver, NullObserver
from ..schemas.domain import Message, PreTask
from .loop import ConversationLoop
from .models import ConversationState, LoopOutcome

logger = get_logger(__name__)

EXPLORING_TASK_NAME = "exploring"
DONE_MARKER = "{{DONE}}"

REQUIRED_AGENT_MD_SECTIONS = (
    "## Project Map",
    "**Entry:**",
    "**Core:**",
    "### Structure (grouped)",
    "### Conventions",
    "### Finding things",
    "## Rules",
    "### Always",
    "### Never",
    "### Style",
    "### When unsure",
)

_SECTION_CHECKLIST = "\n".join(f"- [ ] `{section}`" for section in REQUIRED_AGENT_MD_SECTIONS)

EXPLORING_SYSTEM_PROMPT = f"""# Project documentation agent

Your only task is to make sure `AGENT.md` exists in the current working
directory and documents the project completely.

## Step 1: Check for AGENT.md

```bash
ls -la AGENT.md 2>/dev/null || echo "NOT_FOUND"
```

- NOT_FOUND: go to Step 2 and create the file.
- Exists: go to Step 3 and validate it.

## Step 2: Create AGENT.md

### 2.1 Required sections

```markdown
## Project Map
**Entry:**
**Core:**

### Structure (grouped)

### Conventions

### Finding things

## Rules

### Always

### Never

### Style

### When unsure
```

### 2.2 Explore the workspace

Run whatever commands help you understand the project (`ls -la`, `find`,
`grep -rn`, `head`, `git ls-files`, build files such as `pyproject.toml`,
`package.json`, `go.mod`, `Makefile`). Find the entry point, where the core
logic lives, how the project is structured, which conventions it follows,
how to find things and which rules should be followed. If a command is
missing, try an alternative.

### 2.3 Write AGENT.md

Fill every required section for this specific project, concise but
informative. Then output `{DONE_MARKER}`.

## Step 3: Validate an existing AGENT.md

```bash
grep -E "^## Project Map|^### Structure|^### Conventions|^### Finding things|^## Rules|^### Always|^### Never|^### Style|^### When unsure" AGENT.md
```

Required sections checklist:
{_SECTION_CHECKLIST}

- Any section missing: explore as in Step 2.2, add the missing sections to
  AGENT.md, then output `{DONE_MARKER}`.
- All sections present: output `{DONE_MARKER}`.

## Output format

Your final output MUST be exactly `{DONE_MARKER}` when the task is complete.

## Notes

1. Detect the actual tech stack; do not assume a language.
2. Keep each bullet actionable and specific.
3. Only document what exists in the project.
4. When updating, merge with the existing content instead of replacing it.
5. Ensuring AGENT.md is complete is your only job.
"""


def default_exploring_task() -> PreTask:
    """Return the built-in pre-task that makes sure AGENT.md exists."""
    return PreTask(
        name=EXPLORING_TASK_NAME,
        system_prompt=EXPLORING_SYSTEM_PROMPT,
        done_marker=DONE_MARKER,
    )


class PreTaskRunner:
    """Run pre-tasks sequentially, each in its own private history."""

    def __init__(
        self,
        loop: ConversationLoop,
        *,
        max_turns: int = DEFAULT_MAX_TURNS,
        observer: Optional[ConversationObserver] = None,
    ) -> None:
        self._loop = loop
        self._max_turns = max_turns
        self._observer = observer or NullObserver()

    async def run(self, task: PreTask) -> LoopOutcome:
        """
        Run a single pre-task to completion.

        Raises:
            PreTaskError: When the task is cancelled, exhausts its turn budget
                or receives an empty response. The cause is chained.
        """
        history = ConversationState(
            [Message.system(task.system_prompt), Message.user(task.effective_input)]
        )
        self._observer.on_pretask_start(task.name)
        logger.info(f"Running pre-task '{task.name}'")

        try:
            outcome = await self._loop.run(history, max_turns=self._max_turns, done_marker=task.done_marker)
        except (MaxTurnsExceededError, EmptyResponseError) as e:
            raise PreTaskError(task.name, e) from e

        self._observer.on_pretask_end(task.name)
        if outcome.cancelled:
            cause = ToolCancelledError()
            raise PreTaskError(task.name, cause) from cause

        logger.debug(f"Pre-task '{task.name}' finished after {outcome.turns} turn(s)")
        return outcome

    async def run_all(self, tasks: Sequence[PreTask]) -> None:
        """Run ``tasks`` in order; the first failure aborts the sequence."""
        for task in tasks:
            await self.run(task)
