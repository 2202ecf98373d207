"""Prompt generation for loom."""

from ..models import Message

FORMAT_INSTRUCTION = """
CRITICAL FORMAT INSTRUCTIONS:
You MUST wrap ALL your file creation responses in the following XML format:

<boltArtifact id="unique-id" title="Project Title">
<boltAction type="file" filePath="path/to/file.ext">
file content here
</boltAction>
<boltAction type="file" filePath="path/to/another.ext">
another file content
</boltAction>
</boltArtifact>

RULES:
1. ALWAYS use <boltArtifact> as the root wrapper
2. ALWAYS use <boltAction type="file" filePath="..."> for each file
3. Put the COMPLETE file content inside each <boltAction> tag
4. Do NOT use markdown code blocks (no ```) inside <boltAction> tags
5. For shell commands, use <boltAction type="shell">command here</boltAction>
"""

FORMAT_REMINDER = """

IMPORTANT INSTRUCTIONS FOR CODE GENERATION:
1. Use ONLY this exact XML format for responses:
<boltAction type="file" filePath="path/to/file.ext">
complete file content here (NO markdown code blocks)
</boltAction>

2. DO NOT generate:
   - External API calls or backend integrations
   - Node.js/server code (only browser-compatible React code)

3. For all component imports, use relative paths like: "./Header.tsx"
4. Only generate files that are actually referenced and used
5. Use TailwindCSS for all styling"""

TEMPLATE_DETECTION_PROMPT = (
    "Return either node or react based on what do you think this project should be. "
    "Only return a single word either 'node' or 'react'. Do not return anything extra."
)


def get_system_prompt(work_dir: str = "/home/project") -> str:
    """Generate the system prompt for build generation.

    Args:
        work_dir: Directory the sandbox mounts the project into

    Returns:
        System instruction describing the environment and output format
    """
    return f"""You are an expert senior software developer building web projects.

## Environment

The project runs inside an in-browser sandbox rooted at {work_dir}.
- Only browser-compatible JavaScript and TypeScript run there
- Dependencies are installed with npm from package.json
- The dev server is started with `npm run dev`

## Output

Respond with a single artifact that contains every file you create or change.
Always write complete file contents; never use placeholders such as
"rest of the code unchanged". Create files in dependency order and add
shell actions only for commands that must run after the files exist.
{FORMAT_INSTRUCTION}"""


def with_format_reminder(message: str) -> str:
    """Append the format reminder to a user chat message."""
    return message + FORMAT_REMINDER


def build_conversation_prompt(messages: list[Message], system_prompt: str | None = None) -> str:
    """Render a conversation as one prompt for single-shot CLI providers.

    Earlier turns are replayed as a transcript; the final user turn is
    placed last so it reads as the current request.

    Args:
        messages: Conversation in send order
        system_prompt: Optional system instruction placed first

    Returns:
        Prompt text
    """
    sections: list[str] = []
    if system_prompt:
        sections.append(f"# System\n\n{system_prompt.strip()}")

    history = messages[:-1]
    if history:
        turns = "\n\n".join(f"## {msg.role.capitalize()}\n\n{msg.content}" for msg in history)
        sections.append(f"# Conversation so far\n\n{turns}")

    if messages:
        sections.append(f"# Current request\n\n{messages[-1].content}")

    return "\n\n---\n\n".join(sections)
