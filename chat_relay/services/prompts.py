from __future__ import annotations


RESEARCH_SYSTEM_PROMPT = (
    "You are a careful research assistant. You answer questions accurately, "
    "say when you are unsure, and never invent sources."
)


def build_research_prompt(*, user_query: str) -> str:
    """Template for full research answers."""
    return (
        "Research the following topic and write a comprehensive answer.\n"
        "Use clear, structured reasoning and avoid guessing when data is insufficient.\n\n"
        "Topic / question:\n"
        f"{user_query.strip()}\n\n"
        "Respond with:\n"
        "1) A short summary of the answer.\n"
        "2) Key findings, one paragraph each.\n"
        "3) Open questions or caveats.\n"
        "4) Suggested sources or search terms for further reading.\n"
    )


def build_quick_prompt(*, user_query: str) -> str:
    """Template for quick, unstructured answers."""
    return (
        "Answer the following question briefly, in at most a few sentences.\n\n"
        f"{user_query.strip()}\n"
    )
