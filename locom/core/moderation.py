"""Content moderation - Pure functions.

This module decides whether user-submitted text and image metadata are
acceptable for publication. Checks are cheap heuristics with no I/O:
substring denylist, capital-letter ratio and word repetition.

Matching is plain case-insensitive substring containment. A legitimate word
containing a denylisted stem is flagged too.
"""

import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable


DEFAULT_DENYLIST: tuple[str, ...] = (
    # Greek profanity stems
    "μαλακ", "γαμ", "σκατ", "πουτ", "αρχιδ", "μαμ", "μπασταρδ",
    # English profanity
    "fuck", "shit", "damn", "bitch", "asshole", "bastard", "crap",
    # Spam phrases
    "buy now", "click here", "limited offer", "act now", "guaranteed",
    "αγόρασε τώρα", "κάνε κλικ", "περιορισμένη προσφορά",
    # Bare URLs
    "http://", "https://", "www.",
)

DEFAULT_IMAGE_TYPES: frozenset[str] = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
})

MAX_IMAGE_BYTES = 10 * 1024 * 1024

# Latin and Greek capitals
CAPITALS_PATTERN = re.compile(r"[A-ZΑ-Ω]")
WHITESPACE_PATTERN = re.compile(r"\s+")

EXCESSIVE_CAPS_MARKER = "EXCESSIVE_CAPS"

REASON_EXCESSIVE_CAPS = "Excessive use of capital letters"
REASON_REPETITION = "Excessive word repetition (possible spam)"
REASON_INAPPROPRIATE = "Contains inappropriate language"
REASON_IMAGE_TOO_LARGE = "Image file is too large (max 10MB)"
REASON_IMAGE_TYPE = "Invalid image file type"
REASON_IMAGE_NAME = "Inappropriate file name"


@dataclass(frozen=True)
class ModerationVerdict:
    """Result of a moderation check.

    Attributes:
        is_appropriate: True if the content may be published
        reason: Human-readable reason, always set when rejected
        flagged_terms: Terms that triggered the rejection
    """
    is_appropriate: bool
    reason: str | None = None
    flagged_terms: tuple[str, ...] = ()


ACCEPTED = ModerationVerdict(is_appropriate=True)


@dataclass(frozen=True)
class ImageFile:
    """Metadata of an attached image. Pixels are never inspected.

    Attributes:
        name: Display file name
        size_bytes: File size in bytes
        media_type: Declared MIME type (e.g., 'image/png')
    """
    name: str
    size_bytes: int
    media_type: str


@dataclass(frozen=True)
class SubmissionValidation:
    """Aggregated result of validating a post submission.

    Attributes:
        is_valid: True if no check failed
        errors: Failure reasons, text first then image
    """
    is_valid: bool
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class ModerationPolicy:
    """Tunable parameters of the content filter.

    Attributes:
        denylist: Substrings that reject text when found (case-insensitive)
        caps_ratio_threshold: Reject when capitals / length exceeds this
        caps_min_length: Caps rule only applies to texts longer than this
        repetition_threshold: Reject when a token occurs more than this
        repetition_min_length: Repetition rule only counts longer tokens
        max_image_bytes: Largest accepted image
        allowed_image_types: Accepted MIME types
    """
    denylist: tuple[str, ...] = DEFAULT_DENYLIST
    caps_ratio_threshold: float = 0.5
    caps_min_length: int = 10
    repetition_threshold: int = 5
    repetition_min_length: int = 3
    max_image_bytes: int = MAX_IMAGE_BYTES
    allowed_image_types: frozenset[str] = DEFAULT_IMAGE_TYPES


def find_denylisted_terms(text: str, denylist: Iterable[str]) -> list[str]:
    """Return every denylist entry contained in text, in denylist order.

    Pure function.
    """
    lowered = text.lower()
    return [term for term in denylist if term.lower() in lowered]


def capitals_ratio(text: str) -> float:
    """Ratio of Latin/Greek capital letters to text length (0 for empty text).

    Pure function.
    """
    if not text:
        return 0.0
    return len(CAPITALS_PATTERN.findall(text)) / len(text)


def find_repeated_token(
    text: str,
    threshold: int,
    min_length: int,
) -> str | None:
    """Return the first token longer than min_length seen more than threshold times.

    Pure function. Tokens are whitespace-separated and case-sensitive.
    """
    counts = Counter(WHITESPACE_PATTERN.split(text))
    for token, count in counts.items():
        if count > threshold and len(token) > min_length:
            return token
    return None


class ContentFilter:
    """Synchronous content admission checks driven by a ModerationPolicy."""

    def __init__(self, policy: ModerationPolicy | None = None) -> None:
        self.policy = policy or ModerationPolicy()

    def check_text(self, text: str) -> ModerationVerdict:
        """Classify free text.

        Precedence: excessive capitals, then repetition, then denylist.

        Args:
            text: Submitted text

        Returns:
            ModerationVerdict
        """
        policy = self.policy
        flagged = find_denylisted_terms(text, policy.denylist)

        if (
            capitals_ratio(text) > policy.caps_ratio_threshold
            and len(text) > policy.caps_min_length
        ):
            return ModerationVerdict(
                is_appropriate=False,
                reason=REASON_EXCESSIVE_CAPS,
                flagged_terms=(EXCESSIVE_CAPS_MARKER,),
            )

        repeated = find_repeated_token(
            text,
            policy.repetition_threshold,
            policy.repetition_min_length,
        )
        if repeated is not None:
            return ModerationVerdict(
                is_appropriate=False,
                reason=REASON_REPETITION,
                flagged_terms=(repeated,),
            )

        if flagged:
            return ModerationVerdict(
                is_appropriate=False,
                reason=REASON_INAPPROPRIATE,
                flagged_terms=tuple(flagged),
            )

        return ACCEPTED

    def check_image(self, image: ImageFile) -> ModerationVerdict:
        """Check image metadata: size, media type and file name."""
        policy = self.policy

        if image.size_bytes > policy.max_image_bytes:
            return ModerationVerdict(is_appropriate=False, reason=REASON_IMAGE_TOO_LARGE)

        if image.media_type not in policy.allowed_image_types:
            return ModerationVerdict(is_appropriate=False, reason=REASON_IMAGE_TYPE)

        if not self.check_text(image.name).is_appropriate:
            return ModerationVerdict(is_appropriate=False, reason=REASON_IMAGE_NAME)

        return ACCEPTED

    def validate_submission(
        self,
        text: str,
        image: ImageFile | None = None,
    ) -> SubmissionValidation:
        """Run text and image checks and collect every failure reason."""
        errors: list[str] = []

        text_verdict = self.check_text(text)
        if not text_verdict.is_appropriate:
            errors.append(text_verdict.reason or "Inappropriate content detected")

        if image is not None:
            image_verdict = self.check_image(image)
            if not image_verdict.is_appropriate:
                errors.append(image_verdict.reason or "Invalid image")

        return SubmissionValidation(is_valid=not errors, errors=tuple(errors))


_default_filter = ContentFilter()


def check_text(text: str) -> ModerationVerdict:
    """Check text with the default policy."""
    return _default_filter.check_text(text)


def check_image(image: ImageFile) -> ModerationVerdict:
    """Check image metadata with the default policy."""
    return _default_filter.check_image(image)


def validate_submission(text: str, image: ImageFile | None = None) -> SubmissionValidation:
    """Validate a post submission with the default policy."""
    return _default_filter.validate_submission(text, image)
