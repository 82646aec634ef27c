"""
Text clamping and speech-oriented normalisation helpers.

Everything here is pure and synchronous so both pipelines can share it.
"""

import json
import re
from typing import Optional

import structlog
from bs4 import BeautifulSoup

logger = structlog.get_logger()

_WS = re.compile(r"\s+")
_SENTENCE_END = re.compile(r"[.!?](?=\s|$)")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


def collapse_whitespace(text: str) -> str:
    return _WS.sub(" ", text or "").strip()


def strip_html(content: Optional[str]) -> str:
    """Plain text from an HTML fragment, whitespace collapsed."""
    if not content:
        return ""
    text = BeautifulSoup(str(content), "html.parser").get_text(" ")
    return collapse_whitespace(text)


# ---------------------------------------------------------------------------
# Clamping
# ---------------------------------------------------------------------------

def clamp_title(title: str, max_words: int = 12) -> str:
    """Keep at most ``max_words`` whole words."""
    words = (title or "").split()
    return " ".join(words[:max_words])


def clamp_summary(text: str, min_chars: int = 300, max_chars: int = 1100) -> str:
    """Fit text into the inclusive window [min_chars, max_chars].

    Text no longer than ``max_chars`` is returned unchanged, including text shorter
    than ``min_chars``. Longer text is cut at the last sentence end that keeps at
    least ``min_chars`` characters, else at the last space in the window, else hard.
    """
    text = (text or "").strip()
    if len(text) <= max_chars:
        return text

    window = text[:max_chars]

    cut = None
    for match in _SENTENCE_END.finditer(text):
        if match.end() > max_chars:
            break
        if match.end() >= min_chars:
            cut = match.end()
    if cut is not None:
        return text[:cut].strip()

    space = window.rfind(" ")
    if space >= min_chars:
        return window[:space].rstrip()

    return window.rstrip()


# ---------------------------------------------------------------------------
# Speech sanitising
# ---------------------------------------------------------------------------

DIGIT_WORDS = {
    "0": "zero",
    "1": "one",
    "2": "two",
    "3": "three",
    "4": "four",
    "5": "five",
    "6": "six",
    "7": "seven",
    "8": "eight",
    "9": "nine",
}

SPELLED_OUT_LABELS = {"api": "A P I", "cdn": "C D N", "www": "W W W"}

_EMAIL = re.compile(r"\b([a-z0-9._%+-]+)@([a-z0-9.-]+\.[a-z]{2,})\b", re.IGNORECASE)
_URL = re.compile(r"https?://[^\s]+", re.IGNORECASE)
_DOMAIN = re.compile(r"\b(?:[a-z0-9-]+\.)+[a-z]{2,}\b", re.IGNORECASE)
_DECIMAL = re.compile(r"\b(\d+)\.(\d+)\b")
_DIGITS = re.compile(r"\d+")


def number_to_words(digits: str) -> str:
    """'2025' -> 'two zero two five'."""
    return " ".join(DIGIT_WORDS.get(d, d) for d in digits)


def domain_to_speech(domain: str) -> str:
    labels = [SPELLED_OUT_LABELS.get(part.lower(), part) for part in domain.split(".") if part]
    return " dot ".join(labels)


def url_to_speech(url: str) -> str:
    """'https://www.example.com/a/b/c' -> 'example dot com slash a slash b and more'."""
    bare = re.sub(r"^https?://", "", url, flags=re.IGNORECASE)
    bare = re.sub(r"^www\.", "", bare, flags=re.IGNORECASE).rstrip(".,;:!?)")

    parts = bare.split("/")
    speech = domain_to_speech(parts[0])
    path = [p for p in parts[1:] if p]
    if path:
        speech += " slash " + " slash ".join(path[:2])
        if len(path) > 2:
            speech += " and more"
    return speech


def sanitize_for_speech(text: Optional[str]) -> str:
    """Rewrite text so it reads naturally aloud."""
    if not text:
        return ""

    out = _EMAIL.sub(lambda m: f" {m.group(1)} at {domain_to_speech(m.group(2))} ", text)
    out = _URL.sub(lambda m: f" {url_to_speech(m.group(0))} ", out)
    out = _DOMAIN.sub(lambda m: f" {domain_to_speech(m.group(0))} ", out)

    out = re.sub(r"\.{3,}|…", ". ", out)
    out = re.sub(r"\s[-–—]\s", " to ", out)
    out = re.sub(r"[-–—]", " ", out)
    out = _DECIMAL.sub(r"\1 point \2", out)
    out = _DIGITS.sub(lambda m: number_to_words(m.group(0)), out)

    return collapse_whitespace(out)


# ---------------------------------------------------------------------------
# Transcript helpers
# ---------------------------------------------------------------------------

def split_paragraphs(text: str) -> list[str]:
    return [p.strip() for p in _PARAGRAPH_SPLIT.split(text or "") if p.strip()]


def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_SPLIT.split(text or "") if s.strip()]


def clean_transcript(text: Optional[str]) -> str:
    """Normalise line endings, quotes and runs of blank lines."""
    if not text:
        return ""
    out = text.replace("\r\n", "\n")
    out = re.sub(r"[“”]", '"', out)
    out = re.sub(r"[‘’]", "'", out)
    out = re.sub(r"[ \t]+", " ", out)
    out = re.sub(r"\n{3,}", "\n\n", out)
    return out.strip()


def extract_main_content(text: Optional[str]) -> str:
    """The body of a script without its intro and outro paragraphs, on one line."""
    paragraphs = split_paragraphs(clean_transcript(text))
    if len(paragraphs) >= 3:
        paragraphs = paragraphs[1:-1]
    return collapse_whitespace(" ".join(paragraphs))


_EMOJI = re.compile(
    "[\U0001F300-\U0001FAFF\U00002600-\U000027BF\U00002B50\U0000FE0F\U0000200D]+"
)
_CUES = re.compile(
    r"[\[(][^\])\n]*\b(music|sfx|cue|applause|pause|beat|intro|outro)\b[^\])\n]*[\])]",
    re.IGNORECASE,
)


def cleanup_for_tts(text: Optional[str]) -> str:
    """Strip markdown, stage cues and emoji; keep paragraph breaks."""
    if not text:
        return ""

    out = clean_transcript(text)
    out = re.sub(r"^#{1,6}\s*", "", out, flags=re.MULTILINE)
    out = re.sub(r"^[-*+]\s+", "", out, flags=re.MULTILINE)
    out = re.sub(r"(\*{1,3}|_{2,3})", "", out)
    out = _CUES.sub("", out)
    out = re.sub(r"^(scene|voiceover|style|direction)\s*[:\-]\s*", "", out, flags=re.IGNORECASE | re.MULTILINE)
    out = _EMOJI.sub("", out)
    out = re.sub(r"\.{3,}|…", ".", out)
    out = re.sub(r"\bAI\b", "artificial intelligence", out)

    paragraphs = [collapse_whitespace(p) for p in split_paragraphs(out)]
    return "\n\n".join(p for p in paragraphs if p)


def _split_long_sentence(sentence: str, max_chars: int) -> list[str]:
    # Word-boundary cut for a single sentence longer than a chunk
    pieces = []
    current = ""
    for word in sentence.split():
        candidate = f"{current} {word}" if current else word
        if len(candidate) > max_chars and current:
            pieces.append(current)
            current = word
        else:
            current = candidate
    if current:
        pieces.append(current)
    return pieces


def chunk_text(text: str, max_chars: int = 2800) -> list[str]:
    """Split text into chunks of at most ``max_chars``.

    Paragraphs are packed whole where they fit; a paragraph longer than a chunk is
    packed sentence by sentence. A single sentence longer than a chunk is cut
    between words. A single word longer than a chunk is emitted as-is.
    """
    chunks: list[str] = []
    current = ""

    def flush():
        nonlocal current
        if current.strip():
            chunks.append(current.strip())
        current = ""

    for para in split_paragraphs(text):
        if len(para) <= max_chars:
            candidate = f"{current}\n\n{para}" if current else para
            if len(candidate) <= max_chars:
                current = candidate
            else:
                flush()
                current = para
            continue

        flush()
        for sentence in split_sentences(para):
            pieces = [sentence]
            if len(sentence) > max_chars:
                pieces = _split_long_sentence(sentence, max_chars)
            for piece in pieces:
                candidate = f"{current} {piece}" if current else piece
                if len(candidate) <= max_chars:
                    current = candidate
                else:
                    flush()
                    current = piece
        flush()

    flush()
    return chunks


# ---------------------------------------------------------------------------
# JSON replies
# ---------------------------------------------------------------------------

def extract_json_object(text: Optional[str]) -> Optional[dict]:
    """Parse the slice between the first '{' and the last '}' of a model reply."""
    if not text or not isinstance(text, str):
        return None

    cleaned = re.sub(r"```(?:json)?", "", text, flags=re.IGNORECASE).strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None

    try:
        parsed = json.loads(cleaned[start:end + 1])
    except json.JSONDecodeError as e:
        logger.debug("json.parse.fail", preview=cleaned[start:start + 160], error=str(e))
        return None

    return parsed if isinstance(parsed, dict) else None
