"""Upload call sites: which policy, form fields and storage folder each one uses."""

from dataclasses import dataclass

from upload_pipeline.validation.fields import AdvertisementFields, CompanionFields, PortfolioFields
from upload_pipeline.validation.policy import (
    ADVERTISEMENT_IMAGE_POLICY,
    CERTIFICATE_POLICY,
    PORTFOLIO_IMAGE_POLICY,
    PROFILE_PICTURE_POLICY,
    ValidationPolicy,
)


@dataclass(frozen=True)
class CallSite:
    name: str
    policy: ValidationPolicy
    file_field: str
    folder: str
    fields_model: type[CompanionFields] | None = None
    resource_type: str = "image"


PROFILE_PICTURE = CallSite(
    name="profile_picture",
    policy=PROFILE_PICTURE_POLICY,
    file_field="image",
    folder="profile_pictures",
)

CERTIFICATE = CallSite(
    name="certificate",
    policy=CERTIFICATE_POLICY,
    file_field="certificate",
    folder="certificates",
    resource_type="auto",
)

PORTFOLIO = CallSite(
    name="portfolio",
    policy=PORTFOLIO_IMAGE_POLICY,
    file_field="image",
    folder="portfolio",
    fields_model=PortfolioFields,
)

ADVERTISEMENT = CallSite(
    name="advertisement",
    policy=ADVERTISEMENT_IMAGE_POLICY,
    file_field="image",
    folder="advertisements",
    fields_model=AdvertisementFields,
)

CALL_SITES: dict[str, CallSite] = {
    site.name: site for site in (PROFILE_PICTURE, CERTIFICATE, PORTFOLIO, ADVERTISEMENT)
}


def get_call_site(name: str) -> CallSite:
    try:
        return CALL_SITES[name]
    except KeyError:
        raise ValueError(
            f"Unknown upload call site '{name}'. Choose from: {sorted(CALL_SITES)}"
        ) from None
