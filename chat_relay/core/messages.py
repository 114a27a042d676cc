"""User-facing text sent over the socket or printed by the CLI."""

# Prefix carried by every error frame sent to the client
ERROR_PREFIX = "Error: "

# Per-query error frames
ERROR_CONFIG_LOAD = ERROR_PREFIX + "Failed to load configuration - {error}"
ERROR_CONFIG_INVALID = ERROR_PREFIX + "Invalid configuration - {error}"
ERROR_RESEARCH_FAILED = ERROR_PREFIX + "Research failed - {error}"

# Chat participants
USER_SENDER_NAME = "You"
ASSISTANT_SENDER_NAME = "Assistant"

# CLI output
RESULTS_BANNER = "RESEARCH RESULTS"
TIP_OLLAMA_NOT_RUNNING = "Tip: Make sure Ollama is running:\n   ollama serve"
TIP_MODEL_MISSING = "Tip: Make sure the model is installed:\n   ollama pull {model}"
CLI_CHAT_CONNECTED = "Connected to {url}. Type a question and press Enter (Ctrl-D to quit)."
CLI_CHAT_SEND_FAILED = "Could not send message: {error}"
