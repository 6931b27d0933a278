"""Immutable upload policies, one instance per call site."""

import re
from dataclasses import dataclass, field
from typing import Iterable

DANGEROUS_EXTENSIONS: tuple[str, ...] = (
    "php",
    "phtml",
    "phar",
    "exe",
    "bat",
    "cmd",
    "sh",
    "ps1",
    "vbs",
    "js",
    "jsp",
    "asp",
    "aspx",
    "html",
    "htm",
    "xhtml",
    # Vector graphics can carry inline script.
    "svg",
    "svgz",
)


def dangerous_extension_pattern(extension: str) -> re.Pattern[str]:
    """Match ``.ext`` anywhere in a name when followed by another dot or the end."""
    return re.compile(rf"\.{re.escape(extension)}(?=\.|$)", re.IGNORECASE)


DEFAULT_DANGEROUS_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    dangerous_extension_pattern(ext) for ext in DANGEROUS_EXTENSIONS
)

IMAGE_CONTENT_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"})
IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp"})
DOCUMENT_CONTENT_TYPES = frozenset({"application/pdf"})
DOCUMENT_EXTENSIONS = frozenset({".pdf"})

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
MAX_FILENAME_LENGTH = 255


@dataclass(frozen=True)
class ValidationPolicy:
    """What a call site accepts. Collections are frozen on construction."""

    allowed_content_types: frozenset[str]
    allowed_extensions: frozenset[str]
    max_bytes: int = MAX_UPLOAD_BYTES
    max_filename_length: int = MAX_FILENAME_LENGTH
    max_files: int = 1
    dangerous_extension_patterns: tuple[re.Pattern[str], ...] = field(
        default=DEFAULT_DANGEROUS_PATTERNS
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "allowed_content_types",
            frozenset(t.lower() for t in self.allowed_content_types),
        )
        object.__setattr__(
            self,
            "allowed_extensions",
            frozenset(e.lower() for e in self.allowed_extensions),
        )
        object.__setattr__(
            self,
            "dangerous_extension_patterns",
            tuple(self.dangerous_extension_patterns),
        )
        if self.max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        if self.max_files != 1:
            raise ValueError("Only single-file uploads are supported")

    def allows_type(self, content_type: str) -> bool:
        return content_type.strip().lower() in self.allowed_content_types

    def allows_extension(self, extension: str) -> bool:
        return extension.lower() in self.allowed_extensions

    def matching_dangerous_pattern(self, filename: str) -> re.Pattern[str] | None:
        for pattern in self.dangerous_extension_patterns:
            if pattern.search(filename):
                return pattern
        return None


def image_policy(
    *,
    extra_content_types: Iterable[str] = (),
    extra_extensions: Iterable[str] = (),
) -> ValidationPolicy:
    """Build a fresh image policy, optionally widened with extra formats."""
    return ValidationPolicy(
        allowed_content_types=IMAGE_CONTENT_TYPES | frozenset(extra_content_types),
        allowed_extensions=IMAGE_EXTENSIONS | frozenset(extra_extensions),
    )


PROFILE_PICTURE_POLICY = image_policy()
PORTFOLIO_IMAGE_POLICY = image_policy()
ADVERTISEMENT_IMAGE_POLICY = image_policy()
CERTIFICATE_POLICY = image_policy(
    extra_content_types=DOCUMENT_CONTENT_TYPES,
    extra_extensions=DOCUMENT_EXTENSIONS,
)
