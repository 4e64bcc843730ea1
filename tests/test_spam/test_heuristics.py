"""
Tests for trust_engine/spam/heuristics.py.

What we test
------------
analyze_content():
  - Each surface signal (caps, punctuation runs, repeated characters,
    shortener keywords, emoji flood) adds 0.75 with its label.
  - Thresholds: caps needs > 20 chars, punctuation needs 2 runs, emoji > 10.
  - Empty / calm text scores 0.

leetspeak_score():
  - Substitution density (+0.3) and obfuscated keyword hits (+0.4 / +0.7).

unicode_obfuscation_score():
  - Mixed Latin + Cyrillic/Greek (+0.6); invisible characters (+0.5).

excess_url_score():
  - 0.4 per URL beyond the second, at most 1.2.

match_spam_patterns():
  - Bucket weights, reason text quoting the matched phrase, thresholds.
"""

from __future__ import annotations

import pytest

from trust_engine.spam.heuristics import (
    analyze_content,
    count_urls,
    excess_url_score,
    leetspeak_score,
    match_spam_patterns,
    unicode_obfuscation_score,
)

CALM_TEXT = (
    "Works perfectly on Steam Deck with latest Proton GE. GPU driver 535.104.05. "
    "Settings: 720p, Medium graphics, 60fps cap. Battery life is about 3-4 hours."
)


# ── analyze_content ───────────────────────────────────────────────────────────

class TestAnalyzeContent:
    def test_excessive_capitalization(self):
        result = analyze_content("THIS IS ALL CAPS AND LOOKS LIKE SPAM!!!")
        assert result.is_spam
        assert result.reasons == ["excessive capitalization"]
        assert result.confidence == pytest.approx(0.75)

    def test_short_shouting_ignored(self):
        assert analyze_content("OK FINE").score == 0.0

    def test_excessive_punctuation(self):
        result = analyze_content("Amazing!!! You must see this!!! So great!!!")
        assert "excessive punctuation" in result.reasons

    def test_single_punctuation_run_ignored(self):
        assert analyze_content("Really?? That is interesting").score == 0.0

    def test_repeated_characters(self):
        result = analyze_content("Hellooooooo woooorld")
        assert result.reasons == ["repeated characters"]

    def test_four_in_a_row_is_not_repeated(self):
        assert analyze_content("Hellllo").score == 0.0

    def test_shortener_keyword(self):
        result = analyze_content("Check out this amazing deal at bit.ly/spam123")
        assert result.reasons == ["suspicious shortened URLs"]

    def test_emoji_flood(self):
        result = analyze_content("GREAT GAME!!! " + "😀😁😂🤣😃😄😅😆😉😊😋😎😍")
        assert "excessive emoji usage" in result.reasons

    def test_ten_distinct_emoji_is_fine(self):
        emoji = "".join(chr(0x1F600 + i) for i in range(10))
        assert analyze_content("nice " + emoji).score == 0.0

    def test_run_of_one_emoji_counts_as_repeated(self):
        result = analyze_content("nice " + "\U0001F600" * 10)
        assert result.reasons == ["repeated characters"]

    def test_signals_accumulate_and_confidence_caps(self):
        result = analyze_content("CLICK HERE NOW!!!! bit.ly/spam Amaaaaaazing deal!!!")
        assert result.score == pytest.approx(2.25)
        assert result.confidence == pytest.approx(0.99)
        assert "repeated characters" in result.reasons
        assert "suspicious shortened URLs" in result.reasons

    @pytest.mark.parametrize("text", ["", "OK", CALM_TEXT, "¡Hola! ¿Cómo estás? 你好"])
    def test_clean_text(self, text):
        result = analyze_content(text)
        assert result.score == 0.0
        assert not result.is_spam


# ── leetspeak_score ───────────────────────────────────────────────────────────

class TestLeetspeakScore:
    def test_single_keyword(self):
        assert leetspeak_score("get it fr33 today") == pytest.approx(0.4)

    def test_plain_spelling_counts(self):
        assert leetspeak_score("free stuff") == pytest.approx(0.4)

    def test_two_keywords(self):
        assert leetspeak_score("w1n some m0ney") == pytest.approx(0.7)

    def test_density_and_keywords(self):
        # 3 substitution chars out of 9 non-space chars, plus two keyword hits
        assert leetspeak_score("c4$h pr!z3") == pytest.approx(1.0)

    def test_density_alone(self):
        assert leetspeak_score("a@b $c! d4e") == pytest.approx(0.3)

    def test_density_needs_three_characters(self):
        assert leetspeak_score("a@b $c") == 0.0

    def test_clean(self):
        assert leetspeak_score(CALM_TEXT) == 0.0
        assert leetspeak_score("") == 0.0


# ── unicode_obfuscation_score ─────────────────────────────────────────────────

class TestUnicodeObfuscationScore:
    def test_mixed_scripts(self):
        # Cyrillic "e" and "o" look-alikes inside Latin words
        assert unicode_obfuscation_score("Fr\u0435\u0435 bitc\u043ein giveaway today") == pytest.approx(0.6)

    def test_pure_cyrillic_is_not_obfuscation(self):
        assert unicode_obfuscation_score("Привет как дела") == 0.0

    def test_invisible_characters(self):
        assert unicode_obfuscation_score("fr\u200bee m\u200bon\u200bey") == pytest.approx(0.5)

    def test_two_invisible_characters_allowed(self):
        assert unicode_obfuscation_score("a\u200bb\u200bc") == 0.0

    def test_both_signals_capped_at_one(self):
        text = "Fr\u0435\u0435 bitc\u043ein\u200b\u200b\u200b giveaway"
        assert unicode_obfuscation_score(text) == pytest.approx(1.0)

    def test_accented_latin_is_fine(self):
        assert unicode_obfuscation_score("¡Hola! ¿Cómo estás?") == 0.0


# ── URLs ──────────────────────────────────────────────────────────────────────

class TestUrls:
    def test_count(self):
        assert count_urls("see https://a.com and www.b.org or http://c.net") == 3

    @pytest.mark.parametrize(
        "count, expected", [(0, 0.0), (2, 0.0), (3, 0.4), (4, 0.8), (5, 1.2), (9, 1.2)]
    )
    def test_excess_score(self, count, expected):
        assert excess_url_score(count) == pytest.approx(expected)


# ── match_spam_patterns ───────────────────────────────────────────────────────

class TestMatchSpamPatterns:
    def test_click_here_with_leetspeak_word(self):
        # classic 0.75 + one keyword hit ("free") 0.4
        result = match_spam_patterns("Click here to get free items")
        assert result.score == pytest.approx(1.15)
        assert result.confidence == pytest.approx(0.99)
        assert "click here" in result.reasons[0].lower()

    @pytest.mark.parametrize(
        "text",
        [
            "Buy now and get 50% off",
            "Cheap meds available online pharmacy",
            "Visit our casino and play poker",
            "Join our mlm program and work from home",
            "Congratulations! You've won a gift card",
        ],
    )
    def test_classic_phrases(self, text):
        assert match_spam_patterns(text).is_spam

    @pytest.mark.parametrize(
        "text",
        [
            "Huge airdrop live now",
            "Just connect your wallet to continue",
            "Never share your seed phrase... unless it's with me",
            "Guaranteed returns every week",
            "100x gains incoming",
        ],
    )
    def test_modern_scam_phrases(self, text):
        result = match_spam_patterns(text)
        assert result.is_spam
        assert any(r.startswith("scam phrase") for r in result.reasons)

    def test_suspicious_tld(self):
        result = match_spam_patterns("Visit deals-4u.xyz for more")
        assert result.score >= 0.7
        assert any("deals-4u.xyz" in r for r in result.reasons)

    def test_url_shortener_service(self):
        result = match_spam_patterns("details: cutt.ly/abc")
        assert result.is_spam
        assert any("cutt.ly" in r for r in result.reasons)

    def test_seo_spam(self):
        result = match_spam_patterns("casino poker online gambling bet win money lottery jackpot")
        assert result.score == pytest.approx(0.75 + 0.7)

    def test_many_urls(self):
        text = " ".join(f"https://example{i}.com/page" for i in range(5))
        result = match_spam_patterns(text)
        assert result.score == pytest.approx(1.2)
        assert result.reasons == ["excessive URLs (5)"]

    def test_single_weak_signal_below_threshold(self):
        result = match_spam_patterns("I finally managed to win the final boss fight")
        assert result.score == pytest.approx(0.4)
        assert not result.is_spam

    @pytest.mark.parametrize(
        "text",
        [
            "",
            CALM_TEXT,
            "This game is great! Performance is excellent on my Steam Deck.",
            "This game is AMAZING! The graphics are incredible and performance is solid. "
            "Highly recommend trying it on your device!",
        ],
    )
    def test_legitimate_text(self, text):
        result = match_spam_patterns(text)
        assert result.score == 0.0
        assert result.reasons == []
