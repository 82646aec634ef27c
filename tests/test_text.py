"""Tests for clamping, speech sanitising and chunking helpers."""

from torchcast.processors.text import (
    chunk_text,
    clamp_summary,
    clamp_title,
    cleanup_for_tts,
    extract_json_object,
    extract_main_content,
    sanitize_for_speech,
    strip_html,
)


class TestClamp:
    def test_twenty_words_become_twelve_whole_words(self):
        words = [f"word{i}" for i in range(20)]
        result = clamp_title(" ".join(words))

        assert result.split() == words[:12]

    def test_short_title_unchanged(self):
        assert clamp_title("Short and sweet") == "Short and sweet"

    def test_long_summary_fits_window_and_ends_on_sentence(self):
        text = " ".join(f"Sentence number {i} says something useful." for i in range(60))
        result = clamp_summary(text, 300, 1100)

        assert 300 <= len(result) <= 1100
        assert result.endswith(".")

    def test_short_summary_passes_through(self):
        text = "Too short to pad."
        assert clamp_summary(text, 300, 1100) == text

    def test_summary_inside_window_unchanged(self):
        text = "a" * 200 + ". " + "b" * 400 + "."
        assert clamp_summary(text, 300, 1100) == text

    def test_no_sentence_end_cuts_at_word(self):
        text = " ".join(["lorem"] * 400)
        result = clamp_summary(text, 300, 1100)

        assert len(result) <= 1100
        assert result.endswith("lorem")

    def test_unbroken_text_hard_cut(self):
        assert len(clamp_summary("x" * 5000, 300, 1100)) == 1100


class TestSpeech:
    def test_digits_become_words(self):
        assert sanitize_for_speech("Released in 2025") == "Released in two zero two five"

    def test_domain_and_email(self):
        result = sanitize_for_speech("Mail jo@example.com or see example.org")
        assert "jo at example dot com" in result
        assert "example dot org" in result

    def test_url_keeps_two_path_parts(self):
        result = sanitize_for_speech("Read https://www.example.com/a/b/c now")
        assert "example dot com slash a slash b and more" in result

    def test_hyphens_and_ellipses(self):
        assert sanitize_for_speech("state-of-the-art...really") == "state of the art. really"

    def test_decimal_point(self):
        assert sanitize_for_speech("version 3.5") == "version three point five"


class TestTranscript:
    def test_main_content_drops_intro_and_outro(self):
        text = "Intro here.\n\nMain one.\n\nMain two.\n\nOutro here."
        assert extract_main_content(text) == "Main one. Main two."

    def test_main_content_keeps_short_scripts(self):
        assert extract_main_content("Only one.\n\nAnd two.") == "Only one. And two."

    def test_cleanup_strips_markdown_cues_and_emoji(self):
        text = "## Heading\n\n**Bold** claim [MUSIC CUE] about AI 🚀...\n\n- a point"
        result = cleanup_for_tts(text)

        assert "#" not in result and "*" not in result
        assert "MUSIC" not in result
        assert "🚀" not in result
        assert "artificial intelligence" in result
        assert result.split("\n\n")[-1] == "a point"

    def test_strip_html(self):
        assert strip_html("<p>Hello <b>world</b></p>") == "Hello world"


class TestChunking:
    def test_chunks_respect_limit_and_paragraphs(self):
        paragraphs = [f"Paragraph {i}. " + "Words here. " * 20 for i in range(10)]
        chunks = chunk_text("\n\n".join(paragraphs), max_chars=600)

        assert all(len(c) <= 600 for c in chunks)
        assert "".join(chunks).replace("\n", "").replace(" ", "") == "".join(paragraphs).replace(" ", "")

    def test_long_paragraph_split_between_sentences(self):
        para = " ".join(f"This is sentence {i}." for i in range(100))
        chunks = chunk_text(para, max_chars=200)

        assert all(len(c) <= 200 for c in chunks)
        assert all(c.endswith(".") for c in chunks)

    def test_long_sentence_split_between_words(self):
        sentence = " ".join(["word"] * 200) + "."
        chunks = chunk_text(sentence, max_chars=100)

        assert all(len(c) <= 100 for c in chunks)
        assert all(not c.startswith("ord") for c in chunks)

    def test_empty_text_has_no_chunks(self):
        assert chunk_text("   ") == []


class TestJsonExtraction:
    def test_fenced_reply(self):
        reply = 'Sure!\n```json\n{"title": "T", "description": "D"}\n```'
        assert extract_json_object(reply) == {"title": "T", "description": "D"}

    def test_garbage_is_none(self):
        assert extract_json_object("no json here") is None
        assert extract_json_object("{broken") is None
        assert extract_json_object(None) is None
