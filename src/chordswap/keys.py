"""Key detection from the chords of a sheet.

Every one of the 30 conventional keys is tried.  The chords are numbered
in the candidate key and scored:

  * scale fit: share of chords whose root is in the scale (weight 0.3)
  * canonical progressions found in the sequence (0.2 each, at most 0.4)
  * tonic share (0.3) and share of the mode's primary chords (0.2)
  * 0.1 when the mode's tell-tale chords co-occur (I, V and vi in major;
    VI and VII in minor)
  * minus ``(r - 0.4) * 0.3`` when the out-of-key share ``r`` exceeds 0.4
  * minus 0.2 when the other mode's primary chords outnumber the tonic

The result is clamped to [0, 1].
"""

import logging
from collections import Counter

from .chords import extract_chords_from_text
from .models import Chord, KeyDetectionResult, KeySignature, Quality
from .nashville import extract_nashville_tokens
from .tables import ENHARMONIC_EQUIVALENTS, KEY_SIGNATURES

logger = logging.getLogger(__name__)

MAJOR_PROGRESSIONS = (
    ("1", "5", "6m", "4"),  # I-V-vi-IV
    ("1", "4", "5", "1"),  # I-IV-V-I
    ("6m", "4", "1", "5"),  # vi-IV-I-V
    ("1", "6m", "4", "5"),  # I-vi-IV-V
    ("1", "4", "1", "5"),
    ("4", "5", "1"),
    ("1", "5", "6m"),
    ("2m", "5", "1"),  # ii-V-I
    ("6m", "2m", "5", "1"),
)

MINOR_PROGRESSIONS = (
    ("1m", "7", "6", "7"),
    ("1m", "4m", "5", "1m"),  # harmonic minor cadence
    ("1m", "6", "7", "1m"),
    ("1m", "3", "7", "1m"),
    ("1m", "4m", "1m"),
    ("1m", "5", "1m"),
    ("6", "7", "1m"),
    ("1m", "2°", "5", "1m"),
)

_MINOR_BASE_NUMBERS = ("1m", "2°", "3", "4m", "5", "6", "7")


def default_result() -> KeyDetectionResult:
    return KeyDetectionResult(key="C", is_minor=False, confidence=0.0)


# ---------------------------------------------------------------------------
# Numbering chords in a candidate key
# ---------------------------------------------------------------------------


def _scale_degree(note: str, signature: KeySignature) -> int | None:
    degree = signature.degree_of(note)
    if degree is None and note in ENHARMONIC_EQUIVALENTS:
        degree = signature.degree_of(ENHARMONIC_EQUIVALENTS[note])
    return degree


def _major_number(chord: Chord, degree: int) -> str:
    number = str(degree)
    if chord.quality is Quality.MINOR and number in ("2", "3", "6"):
        number += "m"
    elif chord.quality is Quality.DIMINISHED:
        number += "°"
    return number


def _minor_number(chord: Chord, degree: int) -> str:
    number = _MINOR_BASE_NUMBERS[degree - 1]
    if chord.quality is Quality.MINOR and number in ("1", "4", "5"):
        number += "m"
    elif chord.quality is Quality.MAJOR and number in ("1m", "4m", "5m"):
        number = number[:-1]
    elif chord.quality is Quality.DIMINISHED:
        number = number.replace("m", "") + "°"
    return number


def number_in_key(chord: Chord, signature: KeySignature) -> str | None:
    """Number *chord* in *signature* for scoring, or None if its root is off the scale.

    This is a coarser numbering than :func:`chordswap.nashville.chord_to_nashville`:
    only the qualities that tell the modes apart are kept.
    """
    degree = _scale_degree(chord.root, signature)
    if degree is None:
        return None
    if signature.is_minor:
        return _minor_number(chord, degree)
    return _major_number(chord, degree)


def _contains(sequence: list[str], progression: tuple[str, ...]) -> bool:
    size = len(progression)
    return any(tuple(sequence[i:i + size]) == progression for i in range(len(sequence) - size + 1))


def find_progressions(numbers: list[str], is_minor: bool) -> tuple[str, ...]:
    """Return the canonical progressions found as runs in *numbers*, e.g. ``"1-5-6m-4"``."""
    table = MINOR_PROGRESSIONS if is_minor else MAJOR_PROGRESSIONS
    return tuple("-".join(p) for p in table if _contains(numbers, p))


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def _confidence(
    total: int,
    in_scale: int,
    progressions: int,
    frequency: Counter,
    is_minor: bool,
) -> float:
    tonic = frequency["1m" if is_minor else "1"]
    confidence = in_scale / total * 0.3
    confidence += min(progressions * 0.2, 0.4)
    confidence += tonic / total * 0.3

    major_primaries = frequency["1"] + frequency["4"] + frequency["5"]
    minor_primaries = frequency["1m"] + frequency["4m"] + frequency["5m"]
    if is_minor:
        confidence += minor_primaries / total * 0.2
        if frequency["6"] and frequency["7"]:
            confidence += 0.1
    else:
        confidence += major_primaries / total * 0.2
        if frequency["1"] and frequency["5"] and frequency["6m"]:
            confidence += 0.1

    out_of_key = (total - in_scale) / total
    if out_of_key > 0.4:
        confidence -= (out_of_key - 0.4) * 0.3

    opposite = major_primaries if is_minor else minor_primaries
    if opposite > tonic:
        confidence -= 0.2

    return max(0.0, min(1.0, confidence))


def score_key(chords: list[Chord], signature: KeySignature) -> KeyDetectionResult:
    """Score how well *chords* fit one candidate key."""
    numbers = []
    in_scale = 0
    for chord in chords:
        number = number_in_key(chord, signature)
        if number is not None:
            numbers.append(number)
            in_scale += 1

    frequency = Counter(numbers)
    progressions = find_progressions(numbers, signature.is_minor)
    return KeyDetectionResult(
        key=signature.name,
        is_minor=signature.is_minor,
        confidence=_confidence(len(chords), in_scale, len(progressions), frequency, signature.is_minor),
        chord_frequency=dict(frequency),
        progression_matches=progressions,
        tonic_indicators=frequency["1"] + frequency["1m"],
    )


def _exact_spellings(chords: list[Chord], signature: KeySignature) -> int:
    return sum(1 for chord in chords if signature.degree_of(chord.root) is not None)


def rank_keys(chords: list[Chord]) -> list[KeyDetectionResult]:
    """Score *chords* against all 30 keys, best first.

    Ties go to the key whose scale spells the roots as written (``Gb`` over
    ``F#`` for ``Gb Db Ebm``), then to majors.
    """
    if not chords:
        return [default_result()]
    scored = [
        (score_key(chords, signature), _exact_spellings(chords, signature))
        for signature in KEY_SIGNATURES.values()
    ]
    scored.sort(key=lambda pair: (pair[0].confidence, pair[1]), reverse=True)
    return [result for result, _ in scored]


def detect_key_from_chords(chords: list[Chord]) -> KeyDetectionResult:
    best = rank_keys(chords)[0]
    if best.confidence <= 0:
        return default_result()
    logger.debug("detected key %s (confidence %.2f)", best.key, best.confidence)
    return best


def detect_key(text: str, style: str = "brackets") -> KeyDetectionResult:
    """Return the most likely key of *text*.

    Never raises; text without chords gives C major with confidence 0.
    """
    return detect_key_from_chords(extract_chords_from_text(text, style).chords)


def detect_all_keys(text: str, style: str = "brackets") -> list[KeyDetectionResult]:
    return rank_keys(extract_chords_from_text(text, style).chords)


def detect_key_from_nashville(text: str) -> KeyDetectionResult:
    """Guess only the mode of a Nashville chart: ``C`` for major, ``Am`` for minor.

    Numbers carry no pitch, so the tonic itself cannot be recovered.
    """
    numbers = [token for _, token in extract_nashville_tokens(text)]
    if not numbers:
        return default_result()

    minor_tonics = [n.startswith("1m") and not n.startswith("1maj") for n in numbers if n.startswith("1")]
    has_minor_tonic = any(minor_tonics)
    has_major_tonic = not all(minor_tonics)
    is_minor = has_minor_tonic and not has_major_tonic
    return KeyDetectionResult(
        key="Am" if is_minor else "C",
        is_minor=is_minor,
        confidence=0.7,
        chord_frequency=dict(Counter(numbers)),
        progression_matches=find_progressions(numbers, is_minor),
        tonic_indicators=sum(1 for n in numbers if n in ("1", "1m")),
    )
