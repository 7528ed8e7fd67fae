"""
Built-in content analysis: AI-text likelihood, plagiarism patterns and
grammar/style checks.

These are heuristics, not trained models. Every function is a deterministic
function of its input text; the point weights and thresholds below are
tunable placeholders.
"""
import re
import statistics
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from core.config import settings

SENTENCE_SPLIT = re.compile(r"[.!?]+")
TRIGRAM_PATTERN = re.compile(r"\b\w+\s+\w+\s+\w+\b")
PASSIVE_PATTERN = re.compile(r"\b(is|are|was|were|been|being)\s+\w+ed\b", re.IGNORECASE)
SEGMENT_TRANSITION_PATTERN = re.compile(r"\b(however|therefore|furthermore|moreover)\b", re.IGNORECASE)

TRANSITION_WORDS = (
    "however", "therefore", "furthermore", "moreover", "additionally",
    "consequently", "nevertheless", "meanwhile", "subsequently", "accordingly",
    "similarly", "conversely", "specifically", "particularly", "notably",
    "indeed", "certainly", "undoubtedly", "evidently", "apparently",
)
FORMAL_WORDS = ("therefore", "furthermore", "consequently", "nevertheless", "accordingly", "subsequently")
INFORMAL_WORDS = ("gonna", "wanna", "kinda", "sorta", "yeah", "nope", "okay", "ok")

COMMON_PHRASES = (
    "according to research",
    "studies have shown",
    "it is widely known that",
    "in conclusion",
    "furthermore",
    "on the other hand",
    "in addition to this",
    "it can be argued that",
    "research indicates",
    "evidence suggests",
)
ENCYCLOPEDIA_PATTERNS = (
    re.compile(r"is a [a-z]+ (that|which|who)", re.IGNORECASE),
    re.compile(r"was (born|founded|established|created) in \d{4}", re.IGNORECASE),
    re.compile(r"is (known|famous|notable) for", re.IGNORECASE),
    re.compile(r"refers to the", re.IGNORECASE),
)
ENCYCLOPEDIA_MATCH_WORDS = 5

AI_THRESHOLD = 70
HUMAN_THRESHOLD = 30
SEGMENT_LIMIT = 5


class Verdict(str, Enum):
    HUMAN = "human"
    AI_GENERATED = "ai_generated"
    MIXED = "mixed"
    UNCERTAIN = "uncertain"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class TextFeatures:
    avg_sentence_length: float
    sentence_length_variance: float
    repetitive_patterns: int
    transition_word_ratio: float
    passive_voice_ratio: float
    formality_score: float
    unique_word_ratio: float
    starter_variety: float


@dataclass
class AISegment:
    id: str
    text: str
    classification: Verdict
    probability: int


@dataclass
class AIDetectionResult:
    overall_verdict: Verdict
    confidence_level: Confidence
    ai_probability: int
    human_probability: int
    mixed_probability: int
    word_count: int
    segments: List[AISegment] = field(default_factory=list)


@dataclass
class PlagiarismMatch:
    id: str
    source_title: str
    source_url: str
    similarity_percentage: int
    matched_text: str
    word_count: int


@dataclass
class PlagiarismResult:
    overall_score: int
    unique_content: int
    matched_content: int
    sources_found: int
    word_count: int
    matches: List[PlagiarismMatch] = field(default_factory=list)


@dataclass
class GrammarIssue:
    id: str
    type: str  # grammar, spelling, style, punctuation
    severity: str  # error, warning, suggestion
    message: str
    context: str
    start: int
    end: int
    suggestion: Optional[str] = None


@dataclass
class GrammarResult:
    score: int
    word_count: int
    sentence_count: int
    issues: List[GrammarIssue] = field(default_factory=list)


def split_sentences(text: str) -> List[str]:
    return [s for s in SENTENCE_SPLIT.split(text) if s.strip()]


def _count_words(text: str, vocabulary) -> int:
    return sum(len(re.findall(rf"\b{word}\b", text)) for word in vocabulary)


def _clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def extract_features(text: str) -> TextFeatures:
    sentences = split_sentences(text)
    words = text.split()
    lower = text.lower()
    word_total = max(len(words), 1)

    lengths = [len(s.split()) for s in sentences]
    variance = statistics.pvariance(lengths) if lengths else 0.0

    trigram_counts = Counter(TRIGRAM_PATTERN.findall(lower))
    repetitive = sum(1 for count in trigram_counts.values() if count > 2)

    passive = sum(1 for s in sentences if PASSIVE_PATTERN.search(s))

    formal = _count_words(lower, FORMAL_WORDS)
    informal = _count_words(lower, INFORMAL_WORDS)
    formality = 0.5 if formal + informal == 0 else formal / (formal + informal)

    starters = [s.split()[0].lower() for s in sentences if s.split()]
    variety = len(set(starters)) / len(starters) if starters else 1.0

    return TextFeatures(
        avg_sentence_length=len(words) / max(len(sentences), 1),
        sentence_length_variance=variance,
        repetitive_patterns=repetitive,
        transition_word_ratio=_count_words(lower, TRANSITION_WORDS) / word_total,
        passive_voice_ratio=passive / max(len(sentences), 1),
        formality_score=formality,
        unique_word_ratio=len({w.lower() for w in words}) / word_total,
        starter_variety=variety,
    )


def score_features(features: TextFeatures) -> float:
    """Map features to AI-likelihood points, clamped to [0, 100]."""
    score = 0

    # Uniform sentence lengths
    if features.sentence_length_variance < 15:
        score += 15
    elif features.sentence_length_variance < 25:
        score += 8

    if features.transition_word_ratio > 0.08:
        score += 20
    elif features.transition_word_ratio > 0.05:
        score += 10

    score += min(features.repetitive_patterns * 5, 20)

    if features.passive_voice_ratio > 0.5:
        score += 10
    elif features.passive_voice_ratio > 0.3:
        score += 5

    if features.formality_score > 0.7:
        score += 15
    elif features.formality_score > 0.5:
        score += 8

    if features.unique_word_ratio < 0.4:
        score += 15
    elif features.unique_word_ratio < 0.5:
        score += 8

    if features.starter_variety < 0.3:
        score += 15
    elif features.starter_variety < 0.5:
        score += 8

    return _clamp(score)


def classify(ai_probability: float):
    if ai_probability >= AI_THRESHOLD:
        confidence = Confidence.HIGH if ai_probability >= 85 else Confidence.MEDIUM
        return Verdict.AI_GENERATED, confidence
    if ai_probability <= HUMAN_THRESHOLD:
        confidence = Confidence.HIGH if ai_probability <= 15 else Confidence.MEDIUM
        return Verdict.HUMAN, confidence
    return Verdict.MIXED, Confidence.LOW


def _analyze_segments(sentences: List[str], base_score: float) -> List[AISegment]:
    segments = []
    for index, sentence in enumerate(sentences[:SEGMENT_LIMIT]):
        segment_score = base_score
        if SEGMENT_TRANSITION_PATTERN.search(sentence):
            segment_score += 10
        if len(sentence.split()) < 10:
            segment_score -= 5
        segment_score = _clamp(segment_score)

        if segment_score >= 60:
            classification = Verdict.AI_GENERATED
        elif segment_score <= 40:
            classification = Verdict.HUMAN
        else:
            classification = Verdict.MIXED

        segments.append(AISegment(
            id=f"seg-{index}",
            text=sentence.strip(),
            classification=classification,
            probability=round(segment_score),
        ))
    return segments


def analyze_for_ai(content: str) -> AIDetectionResult:
    text = content.strip()
    words = text.split()
    if not words:
        return AIDetectionResult(
            overall_verdict=Verdict.UNCERTAIN,
            confidence_level=Confidence.LOW,
            ai_probability=0,
            human_probability=0,
            mixed_probability=0,
            word_count=0,
        )

    ai_probability = score_features(extract_features(text))
    human_probability = 100 - ai_probability
    verdict, confidence = classify(ai_probability)

    return AIDetectionResult(
        overall_verdict=verdict,
        confidence_level=confidence,
        ai_probability=round(ai_probability),
        human_probability=round(human_probability),
        mixed_probability=round(min(ai_probability, human_probability)),
        word_count=len(words),
        segments=_analyze_segments(split_sentences(text), ai_probability),
    )


def check_plagiarism(content: str, max_matches: Optional[int] = None) -> PlagiarismResult:
    text = content.strip()
    words = text.split()
    sentences = split_sentences(text)
    max_matches = settings.ANALYSIS_MAX_MATCHES if max_matches is None else max_matches

    matches: List[PlagiarismMatch] = []
    seen = set()
    matched_words = 0

    for index, sentence in enumerate(sentences):
        lower = sentence.lower()
        sentence_words = max(len(sentence.split()), 1)
        for phrase_index, phrase in enumerate(COMMON_PHRASES):
            if phrase not in lower:
                continue
            phrase_words = len(phrase.split())
            matched_words += phrase_words
            matched_text = sentence.strip()
            if matched_text in seen:
                continue
            seen.add(matched_text)
            matches.append(PlagiarismMatch(
                id=f"match-{index}-{phrase_index}",
                source_title="Common Academic Phrase Database",
                source_url="#",
                similarity_percentage=20 + round(30 * min(phrase_words / sentence_words, 1)),
                matched_text=matched_text,
                word_count=len(sentence.split()),
            ))

    for index, sentence in enumerate(sentences):
        sentence_words = max(len(sentence.split()), 1)
        for pattern_index, pattern in enumerate(ENCYCLOPEDIA_PATTERNS):
            matched_text = sentence.strip()
            if not pattern.search(sentence) or matched_text in seen:
                continue
            seen.add(matched_text)
            matched_words += ENCYCLOPEDIA_MATCH_WORDS
            matches.append(PlagiarismMatch(
                id=f"wiki-{index}-{pattern_index}",
                source_title="Wikipedia-style Encyclopedia Content",
                source_url="https://en.wikipedia.org",
                similarity_percentage=15 + round(25 * min(ENCYCLOPEDIA_MATCH_WORDS / sentence_words, 1)),
                matched_text=matched_text,
                word_count=len(sentence.split()),
            ))

    overall = round(_clamp(matched_words / max(len(words), 1) * 100))
    # sorted() is stable, so ties keep discovery order
    ranked = sorted(matches, key=lambda m: m.similarity_percentage, reverse=True)

    return PlagiarismResult(
        overall_score=overall,
        unique_content=100 - overall,
        matched_content=overall,
        sources_found=len(matches),
        word_count=len(words),
        matches=ranked[:max_matches],
    )


GRAMMAR_CHECKS = (
    (re.compile(r"\bi\b"), "Capitalize 'I' when used as pronoun", "grammar", "I"),
    (re.compile(r" {2,}"), "Multiple spaces detected", "punctuation", " "),
    (re.compile(r",\s*,"), "Double comma detected", "punctuation", ","),
    (re.compile(r"\b(their|there|they're)\b", re.IGNORECASE), "Check usage of their/there/they're", "grammar", None),
    (re.compile(r"\b(your|you're)\b", re.IGNORECASE), "Check usage of your/you're", "grammar", None),
    (re.compile(r"\b(its|it's)\b", re.IGNORECASE), "Check usage of its/it's", "grammar", None),
    (re.compile(r"\b(affect|effect)\b", re.IGNORECASE), "Check usage of affect/effect", "grammar", None),
    (re.compile(r"\balot\b", re.IGNORECASE), "'A lot' should be two words", "spelling", "a lot"),
    (re.compile(r"\bdefinate\b", re.IGNORECASE), "Spelling: 'definite'", "spelling", "definite"),
    (re.compile(r"\brecieve\b", re.IGNORECASE), "Spelling: 'receive'", "spelling", "receive"),
    (re.compile(r"\boccured\b", re.IGNORECASE), "Spelling: 'occurred'", "spelling", "occurred"),
    (re.compile(r"\bseperate\b", re.IGNORECASE), "Spelling: 'separate'", "spelling", "separate"),
    # Style
    (re.compile(r"\b(very|really|extremely|absolutely)\s+(very|really|extremely|absolutely)\b", re.IGNORECASE),
     "Avoid redundant intensifiers", "style", None),
    (re.compile(r"\bin order to\b", re.IGNORECASE), "Consider using 'to' instead of 'in order to'", "style", "to"),
    (re.compile(r"\bdue to the fact that\b", re.IGNORECASE), "Consider using 'because'", "style", "because"),
    (re.compile(r"\bat this point in time\b", re.IGNORECASE), "Consider using 'now' or 'currently'", "style", "now"),
)

SEVERITY_BY_TYPE = {"spelling": "error", "grammar": "warning"}
SEVERITY_PENALTY = {"error": 5, "warning": 2, "suggestion": 1}


def check_grammar(content: str, max_issues: Optional[int] = None) -> GrammarResult:
    text = content.strip()
    max_issues = settings.ANALYSIS_MAX_ISSUES if max_issues is None else max_issues
    issues: List[GrammarIssue] = []

    for index, (pattern, message, issue_type, suggestion) in enumerate(GRAMMAR_CHECKS):
        for match in pattern.finditer(text):
            start, end = match.span()
            issues.append(GrammarIssue(
                id=f"issue-{index}-{start}",
                type=issue_type,
                severity=SEVERITY_BY_TYPE.get(issue_type, "suggestion"),
                message=message,
                context=text[max(0, start - 20):end + 20],
                start=start,
                end=end,
                suggestion=suggestion,
            ))

    penalty = sum(SEVERITY_PENALTY[issue.severity] for issue in issues)

    return GrammarResult(
        score=round(_clamp(100 - penalty)),
        word_count=len(text.split()),
        sentence_count=len(split_sentences(text)),
        issues=issues[:max_issues],
    )
