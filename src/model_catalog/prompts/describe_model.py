"""
Model description prompt.

Summarizes a Hugging Face model card into a short listing description.
The model answers with NO_SUMMARY_MARKER when the card carries too little
information, which callers treat as "no description".
"""

NO_SUMMARY_MARKER = '[[NOPE]]'

MAX_DESCRIPTION_CHARS = 300

DESCRIBE_MODEL_PROMPT = f"""Please, summarize the following model card into a concise description (max {MAX_DESCRIPTION_CHARS} characters) suitable for a model listing.
Focus on key features, capabilities, and intended use cases. Avoid promotional language. Answer only with the summary.
If there is not enough information to create a summary, respond with "{NO_SUMMARY_MARKER}".
Text to summarize:
----"""


def build_description_prompt(model_card: str) -> list[dict[str, str]]:
    """
    Build the chat messages asking for a model card summary.

    Args:
        model_card: Cleaned model card text

    Returns:
        List of message dicts for the chat API
    """
    return [{'role': 'user', 'content': f"{DESCRIBE_MODEL_PROMPT}{model_card}"}]
