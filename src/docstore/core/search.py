"""Case-insensitive line search over document bodies"""

from docstore.core.models import LineMatch


def search_lines(text: str, query: str, context: int = 2) -> list[LineMatch]:
    """Return every line of text containing query, with up to `context` lines either side.

    Matching is case-insensitive. An empty or whitespace-only query matches nothing.
    """
    needle = query.strip().lower()
    if not needle:
        return []
    lines = text.splitlines()
    matches = []
    for i, line in enumerate(lines):
        if needle in line.lower():
            lo, hi = max(0, i - context), min(len(lines), i + context + 1)
            matches.append(LineMatch(line=i + 1, content=line, context=lines[lo:hi]))
    return matches
