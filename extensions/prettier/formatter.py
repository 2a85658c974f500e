import json


BRACE_LANGUAGES = ("javascript", "typescript", "css")


def format_code(content: str, language: str, tab_size: int = 2) -> str:
    """Format source text.

    JSON is re-serialized, brace languages are re-indented line by line,
    anything else is returned as is.

    :raise ValueError: If ``language`` is json and the content does not parse.
    """
    if language == "json":
        return json.dumps(json.loads(content), indent=tab_size)
    if language not in BRACE_LANGUAGES:
        return content

    indent = 0
    lines = []
    for line in content.split("\n"):
        trimmed = line.strip()
        if trimmed.startswith(("}", "]")):
            indent = max(0, indent - 1)
        lines.append(" " * tab_size * indent + trimmed)
        if trimmed.endswith(("{", "[")):
            indent += 1
    return "\n".join(lines)
