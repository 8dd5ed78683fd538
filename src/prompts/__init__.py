"""Message template loading.

Chatbot answers and greetings are kept as markdown templates next to this
module and filled with ``str.format``.
"""

from functools import lru_cache
from pathlib import Path


TEMPLATES_DIR = Path(__file__).parent


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    """Load a template from the prompts directory.

    Args:
        name: Template filename without extension (e.g., "ask_ai_answer_v1")

    Returns:
        The template text, without surrounding whitespace.

    Raises:
        FileNotFoundError: If the template file doesn't exist.
    """
    path = TEMPLATES_DIR / f"{name}.md"
    if not path.exists():
        raise FileNotFoundError(f"Template not found: {path}")
    return path.read_text(encoding="utf-8").strip()


def render_prompt(name: str, **values: str) -> str:
    """Load a template and substitute ``values`` into it."""
    return load_prompt(name).format(**values)
