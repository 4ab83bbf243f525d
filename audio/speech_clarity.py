"""Speech clarity scoring over a snapshot of recognized segments."""

import logging
import math
from collections import Counter
from typing import Sequence

import numpy as np

from config import constants
from models.scores import ClarityScore
from models.speech import SpeechSegment

logger = logging.getLogger("fast_screen.audio.speech_clarity")

EMPTY_RESULT = ClarityScore(clarity=constants.NEUTRAL_SCORE, confidence=0.0)


def _clip01(value: float) -> float:
    return float(np.clip(value, 0.0, 1.0))


def speaking_rate(segment: SpeechSegment) -> float:
    """Characters per second, 1.0 when the duration is unusable."""
    duration = segment.duration
    if not math.isfinite(duration) or duration <= 0:
        return 1.0
    return len(segment.text) / duration


def segment_clarity(segment: SpeechSegment) -> float:
    clarity = segment.confidence
    if segment.voice_analytics is not None:
        rate = speaking_rate(segment)
        # an unbounded rate clips to 1.0
        normalized_rate = _clip01(
            (rate - constants.SPEAKING_RATE_FLOOR) / constants.SPEAKING_RATE_SPAN
        )
        clarity = (clarity + normalized_rate) / 2.0
    return _clip01(clarity)


def _tokens(text: str) -> Counter:
    return Counter(text.casefold().split())


def text_similarity(transcribed: str, expected: str) -> float:
    """Jaccard index of the two word bags.

    Words are case-folded, split on whitespace and counted with
    multiplicity, so a repeated word in the expected sentence has to be
    spoken twice to be fully matched.
    """
    spoken = _tokens(transcribed or "")
    reference = _tokens(expected or "")
    union = sum((spoken | reference).values())
    if union == 0:
        return 0.0
    return sum((spoken & reference).values()) / union


def score_speech_clarity(
    segments: Sequence[SpeechSegment],
    transcribed_text: str,
    expected_text: str,
) -> ClarityScore:
    """Combine per-segment clarity with transcript similarity.

    Returns (0.5, 0.0) when there is nothing usable to score.
    """
    if not segments:
        return EMPTY_RESULT

    valid = [s for s in segments if s.is_finite()]
    if len(valid) < len(segments):
        logger.debug("Filtered %d non-finite segment(s) before scoring", len(segments) - len(valid))

    clarities = []
    confidences = []
    for segment in valid:
        clarity = segment_clarity(segment)
        if not math.isfinite(clarity):
            continue
        clarities.append(clarity)
        confidences.append(segment.confidence)

    if not clarities:
        return EMPTY_RESULT

    aggregate_clarity = _clip01(float(np.mean(clarities)))
    aggregate_confidence = _clip01(float(np.mean(confidences)))
    similarity = text_similarity(transcribed_text, expected_text)

    result = ClarityScore(
        clarity=_clip01((aggregate_clarity + similarity) / 2.0),
        confidence=aggregate_confidence,
    )
    logger.debug(
        "Clarity computed: segments=%d, aggregate=%.3f, similarity=%.3f, result=%s",
        len(clarities),
        aggregate_clarity,
        similarity,
        result,
    )
    return result
