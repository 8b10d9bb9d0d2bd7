from typing import Optional, Union

from cardex.knowledge.table import CARD_TYPE, GRADING, KnowledgeBase
from cardex.normalizer import clean_title

# Distinct facts a summary needs before it is preferred over the cleaned title
MIN_SUMMARY_FACTS = 2


def fallback_title(title: str, knowledge: Optional[KnowledgeBase] = None) -> str:
    """Cleaned title without card-type and grading words, else the raw title."""
    if not isinstance(title, str):
        return ""
    text = clean_title(title)
    if knowledge is not None and text:
        kept = []
        cursor = 0
        for match in knowledge.tag(text, (CARD_TYPE, GRADING)).matches:
            kept.append(text[cursor:match.start])
            cursor = match.end
        kept.append(text[cursor:])
        text = " ".join("".join(kept).split())
    return text or " ".join(title.split())


def compose_summary(
    year: Optional[Union[int, str]],
    product: Optional[str],
    player_name: Optional[str],
    parallel: Optional[str],
    print_run: Optional[str],
    title: str,
    knowledge: Optional[KnowledgeBase] = None,
) -> str:
    """'[year] [product] [player] [parallel] [printRun]', skipping absent parts."""
    facts = sum(1 for value in (year, product, player_name, parallel or print_run) if value)
    if facts < MIN_SUMMARY_FACTS:
        return fallback_title(title, knowledge)

    parts = [year, product, player_name, parallel, print_run]
    return " ".join(str(part).strip() for part in parts if part)
