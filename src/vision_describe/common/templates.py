"""Prompt templating helpers."""
from __future__ import annotations
from pathlib import Path

PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts"

SYSTEM_TAG = "<|system|>"
USER_TAG = "<|user|>"


def load_template(path: str) -> str:
    """
    Load a prompt template file.

    Args:
        path: Path to a template, or the name of a bundled one ("natural", "structured").
    """
    p = Path(path)
    if not p.suffix and not p.exists():
        p = PROMPTS_DIR / f"{path}.txt"
    return p.read_text(encoding="utf-8")


def split_template(template: str) -> tuple[str | None, str]:
    """
    Split a template into (system, prompt).

    The system part sits between <|system|> and <|user|>; the prompt follows
    <|user|>. Without both tags the whole template is the prompt.
    """
    if SYSTEM_TAG in template and USER_TAG in template:
        start = template.index(SYSTEM_TAG) + len(SYSTEM_TAG)
        end = template.index(USER_TAG, start)
        system = template[start:end].strip()
        prompt = template[end + len(USER_TAG):].strip()
        return (system or None), prompt
    return None, template.strip()
