from __future__ import annotations

DESCRIPTION_STOP_WORDS = frozenset({"and", "the", "for", "with", "in", "of", "to", "a", "an"})

# (keywords, template) checked in order; the first keyword hit picks the template.
SUBJECT_TEMPLATES = (
    (
        ("computer", "programming", "software"),
        "Computer science course covering {terms}. Focuses on programming, algorithms, and software development principles.",
    ),
    (
        ("mathematics", "math", "calculus"),
        "Mathematics course covering {terms}. Develops mathematical reasoning and problem-solving skills.",
    ),
    (
        ("physics", "chemistry", "biology"),
        "Science course covering {terms}. Explores fundamental principles and experimental methods.",
    ),
    (
        ("engineering", "design"),
        "Engineering course covering {terms}. Focuses on design principles and practical applications.",
    ),
)
GENERIC_TEMPLATE = "Course covering {terms}. Provides foundational knowledge and practical skills in the subject area."


def generate_basic_description(title: str) -> str:
    title_lower = title.lower().strip()
    terms = [term for term in title_lower.split() if len(term) > 2 and term not in DESCRIPTION_STOP_WORDS]
    if not terms:
        return f"Course covering {title_lower}"

    joined = " ".join(terms)
    for keywords, template in SUBJECT_TEMPLATES:
        if any(keyword in title_lower for keyword in keywords):
            return template.format(terms=joined)
    return GENERIC_TEMPLATE.format(terms=joined)
