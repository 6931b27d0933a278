"""Companion form-field schemas for call sites that submit text with the file."""

import ipaddress
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, ValidationError, field_validator

from upload_pipeline.errors.classifier import rejection
from upload_pipeline.errors.codes import ErrorCode
from upload_pipeline.logging.logger import Log
from upload_pipeline.validation.models import Rejected

BLOCKED_HOSTNAMES = frozenset({"localhost", "localhost.localdomain"})


def strip_markup(value: str) -> str:
    return value.replace("<", "").replace(">", "").strip()


class CompanionFields(BaseModel):
    """Base for form-field schemas: trims whitespace, drops unknown keys."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    @field_validator("*", mode="after")
    @classmethod
    def _strip_markup(cls, value: object) -> object:
        if isinstance(value, str):
            return strip_markup(value)
        return value

    def extra_rejection(self) -> Rejected | None:
        """Hook for checks that need the parsed values."""
        return None

    def echo(self) -> dict[str, str]:
        return {key: str(value) for key, value in self.model_dump(by_alias=True).items()}


class PortfolioFields(CompanionFields):
    project_title: str = Field(alias="projectTitle", min_length=2, max_length=100)
    description: str = Field(min_length=10, max_length=500)


class AdvertisementFields(CompanionFields):
    title: str = Field(min_length=3, max_length=100)
    company_name: str = Field(alias="companyName", min_length=2, max_length=100)
    description: str = Field(min_length=10, max_length=1000)
    link: HttpUrl

    def extra_rejection(self) -> Rejected | None:
        host = normalize_host(self.link.host or "")
        if is_blocked_host(host):
            Log.warning(f"Advertisement link targets blocked host {host!r}")
            return rejection(ErrorCode.INVALID_DOMAIN)
        return None


def normalize_host(host: str) -> str:
    """Lowercase, unbracketed, without the trailing root dot."""
    return host.strip().strip("[]").rstrip(".").lower()


def is_blocked_host(host: str) -> bool:
    """Loopback, unspecified and localhost names are never valid link targets."""
    host = normalize_host(host)
    if not host or host in BLOCKED_HOSTNAMES or host.endswith(".localhost"):
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    return address.is_loopback or address.is_unspecified


def validate_fields(
    model: type[CompanionFields],
    form: Mapping[str, str],
) -> CompanionFields | Rejected:
    """Parse form fields against ``model``; every failing field is reported."""
    try:
        parsed = model.model_validate(dict(form))
    except ValidationError as exc:
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        Log.warning(f"{model.__name__} validation failed: {len(errors)} error(s)")
        return rejection(ErrorCode.VALIDATION_ERROR, errors=errors)
    return parsed.extra_rejection() or parsed
