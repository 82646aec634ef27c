"""Cheap AI-relevance gate for the optional AI-only feed mode."""

AI_KEYWORDS = (
    "artificial intelligence",
    " ai ",
    "machine learning",
    "deep learning",
    "neural network",
    "llm",
    "large language model",
    "chatgpt",
    "openai",
    "anthropic",
    "google ai",
    "meta ai",
    "generative ai",
    "gen ai",
    "transformer model",
    "ai ethics",
    "ai regulation",
    "ai safety",
)


def has_ai_keywords(title: str, body: str) -> bool:
    # Padding lets " ai " match at either end of the text
    text = f" {title} \n {body} ".lower()
    return any(keyword in text for keyword in AI_KEYWORDS)


def title_matches_body(title: str, body: str) -> bool:
    body = body.lower()
    return any(word in body for word in title.lower().split() if len(word) > 3)


def is_ai_relevant(title: str, body: str) -> bool:
    return has_ai_keywords(title, body) and title_matches_body(title, body)
