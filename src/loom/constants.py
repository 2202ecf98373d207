"""Constants for loom CLI."""

# Subprocess timeouts (seconds)
CLAUDE_TIMEOUT = 600  # 10 minutes for AI operations
GEMINI_TIMEOUT = 600
INSTALL_TIMEOUT = 300  # 5 minutes for dependency install
DEV_SERVER_TIMEOUT = 120
INIT_TOOL_CHECK_TIMEOUT = 10

# Display labels for parsed steps
DEFAULT_FILE_TITLE = "File"
RUN_COMMAND_TITLE = "Run Command"
RUN_COMMAND_DESCRIPTION = "Execute shell command"

# Shown in the conversation when text generation fails
GENERATION_ERROR_PLACEHOLDER = "Sorry, I encountered an error. Please try again."
NO_FILES_WARNING = "No files found in response"
