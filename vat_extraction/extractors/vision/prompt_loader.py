from pathlib import Path

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt_template(path: Path | None = None) -> str:
    """Load the vision prompt template.

    Args:
        path: Path to the template file. Defaults to the bundled vision_prompt.txt.

    Raises:
        OSError: if the file cannot be read.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "vision_prompt.txt"
    return path.read_text(encoding="utf-8")


def load_json_schema(path: Path | None = None) -> str:
    """Load the JSON schema the vision model must answer with."""
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "vision_schema.json"
    return path.read_text(encoding="utf-8")
