"""Shared test fixtures for loom tests."""

import os
from collections.abc import Generator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from loom.core import create_session_directory, save_session
from loom.core.templates import boilerplate_tree
from loom.models import Message, Session, Step, StepStatus, StepType

TAGGED_RESPONSE = """Here is your counter app.

<boltArtifact id="counter" title="Counter">
<boltAction type="file" filePath="/src/App.tsx">
```tsx
export default function App() {
  return <Counter />;
}
```
</boltAction>
<boltAction type="file" filePath="/src/components/Counter.tsx">
export function Counter() { return null; }
</boltAction>
<boltAction type="shell">
npm install
</boltAction>
</boltArtifact>
"""

MARKER_RESPONSE = """I added a helper.

<file path="/src/utils/format.ts" />
```ts
export const format = (n: number) => n.toFixed(2);
```
"""


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def in_tmp_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Run the test with tmp_path as the working directory."""
    original_cwd = os.getcwd()
    os.chdir(tmp_path)
    try:
        yield tmp_path
    finally:
        os.chdir(original_cwd)


@pytest.fixture
def loom_dir(in_tmp_dir: Path) -> Path:
    """Create an initialized .loom directory with a minimal config.

    Returns the .loom path; the working directory is its parent.
    """
    loom_dir = in_tmp_dir / ".loom"
    (loom_dir / "sessions").mkdir(parents=True)
    (loom_dir / "config.toml").write_text(
        """[project]
name = "test-project"

[sandbox]
workdir = "sandbox"
install = "npm install"
dev = "npm run dev"
"""
    )
    return loom_dir


@pytest.fixture
def session(loom_dir: Path) -> Session:
    """Create and persist a session holding the starter tree."""
    session_id = "20260101-120000-counter-app"
    create_session_directory(loom_dir, session_id)
    session = Session(
        session_id=session_id,
        task="counter app",
        template="react",
        messages=[
            Message(role="user", content="counter app"),
            Message(role="assistant", content="Done."),
        ],
        steps=[
            Step(
                id=1,
                type=StepType.CREATE_FILE,
                title="App.tsx",
                description="Update /src/App.tsx",
                status=StepStatus.COMPLETED,
                code="export default function App() {}",
                path="/src/App.tsx",
                batch=1,
            )
        ],
        tree=boilerplate_tree(),
    )
    save_session(loom_dir, session)
    return session


@pytest.fixture
def tagged_response() -> str:
    """Model output using artifact/action tags."""
    return TAGGED_RESPONSE


@pytest.fixture
def marker_response() -> str:
    """Model output using a path marker and a fenced block."""
    return MARKER_RESPONSE
