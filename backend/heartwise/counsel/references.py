import re

# "Proverbs 3:5", "1 Corinthians 13:4-7", "John 3:16"
BIBLE_REFERENCE_PATTERN = re.compile(r"\b\d*\s*[A-Z][a-z]+\s+\d+:\d+(?:-\d+)?\b")


def extract_biblical_references(text: str) -> list[str]:
    """Citation-like substrings in order of first appearance, without duplicates."""
    if not text:
        return []

    seen: set[str] = set()
    references: list[str] = []
    for match in BIBLE_REFERENCE_PATTERN.finditer(text):
        ref = " ".join(match.group(0).split())
        if ref in seen:
            continue
        seen.add(ref)
        references.append(ref)
    return references
