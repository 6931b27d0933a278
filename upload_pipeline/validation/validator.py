from abc import ABC, abstractmethod
from collections.abc import Sequence

from upload_pipeline.errors.classifier import rejection
from upload_pipeline.errors.codes import ErrorCode
from upload_pipeline.logging.logger import Log
from upload_pipeline.validation.filenames import (
    file_extension,
    make_storage_key,
    sanitize_filename,
)
from upload_pipeline.validation.models import (
    Accepted,
    Rejected,
    UploadCandidate,
    ValidationOutcome,
)
from upload_pipeline.validation.policy import ValidationPolicy
from upload_pipeline.validation.signatures import leading_bytes, signature_for


class ValidationCheck(ABC):
    """One read-only check; returns a rejection or None to continue."""

    @abstractmethod
    def check(self, candidate: UploadCandidate, policy: ValidationPolicy) -> Rejected | None:
        raise NotImplementedError


class DeclaredTypeCheck(ValidationCheck):
    def check(self, candidate: UploadCandidate, policy: ValidationPolicy) -> Rejected | None:
        if policy.allows_type(candidate.content_type):
            return None
        return rejection(
            ErrorCode.INVALID_FILE_TYPE,
            allowed_types=sorted(policy.allowed_content_types),
        )


class ExtensionCheck(ValidationCheck):
    def check(self, candidate: UploadCandidate, policy: ValidationPolicy) -> Rejected | None:
        if policy.allows_extension(file_extension(candidate.filename)):
            return None
        return rejection(
            ErrorCode.INVALID_FILE_EXTENSION,
            allowed_extensions=sorted(policy.allowed_extensions),
        )


class DangerousPatternCheck(ValidationCheck):
    """Scans the whole name, so ``shell.php.jpg`` is caught as well as ``shell.php``."""

    def check(self, candidate: UploadCandidate, policy: ValidationPolicy) -> Rejected | None:
        pattern = policy.matching_dangerous_pattern(candidate.filename)
        if pattern is None:
            return None
        Log.warning(f"Suspicious filename rejected (matched {pattern.pattern})")
        return rejection(ErrorCode.SUSPICIOUS_FILE)


class FilenameLengthCheck(ValidationCheck):
    def check(self, candidate: UploadCandidate, policy: ValidationPolicy) -> Rejected | None:
        if len(candidate.filename) <= policy.max_filename_length:
            return None
        return rejection(
            ErrorCode.FILENAME_TOO_LONG,
            f"Filename too long. Maximum {policy.max_filename_length} characters allowed.",
            max_length=policy.max_filename_length,
        )


class NullByteCheck(ValidationCheck):
    def check(self, candidate: UploadCandidate, policy: ValidationPolicy) -> Rejected | None:
        if "\0" not in candidate.filename:
            return None
        return rejection(ErrorCode.INVALID_FILENAME)


class EmptyPayloadCheck(ValidationCheck):
    def check(self, candidate: UploadCandidate, policy: ValidationPolicy) -> Rejected | None:
        if candidate.size > 0:
            return None
        return rejection(ErrorCode.EMPTY_FILE)


class SignatureCheck(ValidationCheck):
    def check(self, candidate: UploadCandidate, policy: ValidationPolicy) -> Rejected | None:
        signature = signature_for(candidate.content_type)
        if signature is None or signature.matches(candidate.data):
            return None
        Log.warning(
            f"File signature mismatch for declared type {candidate.content_type}: "
            f"expected {signature.prefix.hex(' ')}, got {leading_bytes(candidate.data)}",
        )
        return rejection(ErrorCode.INVALID_FILE_SIGNATURE)


DEFAULT_CHECKS: tuple[ValidationCheck, ...] = (
    DeclaredTypeCheck(),
    ExtensionCheck(),
    DangerousPatternCheck(),
    FilenameLengthCheck(),
    NullByteCheck(),
    EmptyPayloadCheck(),
    SignatureCheck(),
)


class ContentValidator:
    """Runs the check chain in order; the first rejection wins."""

    def __init__(self, checks: Sequence[ValidationCheck] = DEFAULT_CHECKS) -> None:
        self._checks = tuple(checks)

    def validate(self, candidate: UploadCandidate, policy: ValidationPolicy) -> ValidationOutcome:
        for check in self._checks:
            rejected = check.check(candidate, policy)
            if rejected is not None:
                Log.debug(f"{type(check).__name__} rejected upload: {rejected.code}")
                return rejected
        sanitized = sanitize_filename(candidate.filename)
        return Accepted(sanitized_filename=sanitized, storage_key=make_storage_key(sanitized))


def validate(candidate: UploadCandidate, policy: ValidationPolicy) -> ValidationOutcome:
    """Validate with the default check chain."""
    return ContentValidator().validate(candidate, policy)
