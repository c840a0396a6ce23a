from __future__ import annotations


LANGUAGE_BLOCK = """
LANGUAGE:
- Detect the user's language automatically.
- If the user writes in Kannada, reply in Kannada.
- If the user writes in Telugu, reply in Telugu.
- If mixed or unclear, default to English.
"""

STYLE_BLOCK = """
STYLE:
- PLAIN TEXT ONLY: no emojis, no decorative symbols, no Markdown/bold/italics.
- Use short sentences and simple numbered or dashed lists.
- Be concise, friendly, and action-focused.
"""

SAFETY_BLOCK = """
SAFETY:
- Never reveal API keys or internal tokens.
"""


def build_instructions(assistant_name: str, detect_language: bool = True) -> str:
    """System instructions sent with every turn."""
    parts = [f"You are the {assistant_name} website assistant.\n"]
    if detect_language:
        parts.append(LANGUAGE_BLOCK)
    parts.append(STYLE_BLOCK)
    parts.append(SAFETY_BLOCK)
    return "".join(parts).strip()
