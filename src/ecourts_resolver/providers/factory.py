"""Provider lookup by type tag."""

import logging

from ecourts_resolver.context import ResolverContext
from ecourts_resolver.models import ProviderConfig
from ecourts_resolver.providers.base import CourtProvider
from ecourts_resolver.providers.district_high_court import DistrictHighCourtProvider
from ecourts_resolver.providers.judgments import JudgmentsProvider
from ecourts_resolver.providers.karnataka_high_court import KarnatakaHighCourtProvider
from ecourts_resolver.providers.manual_import import ManualImportProvider
from ecourts_resolver.providers.third_party import ThirdPartyProvider

logger = logging.getLogger(__name__)

PROVIDERS: dict[str, type[CourtProvider]] = {
    "DISTRICT_HIGH_COURT": DistrictHighCourtProvider,
    "JUDGMENTS": JudgmentsProvider,
    "MANUAL_IMPORT": ManualImportProvider,
    "THIRD_PARTY": ThirdPartyProvider,
    "KARNATAKA_HIGH_COURT": KarnatakaHighCourtProvider,
}


class UnknownProviderTypeError(ValueError):
    def __init__(self, type_tag):
        super().__init__(f"Unknown provider type: {type_tag}")
        self.type_tag = type_tag


def create_provider(
    type_tag: str,
    config: ProviderConfig | None = None,
    context: ResolverContext | None = None,
    **options,
) -> CourtProvider:
    """Instantiate the provider registered under *type_tag*.

    *config* is merged over the provider's own defaults. Extra keyword
    *options* go to the provider constructor (e.g. ``captcha_gate`` for the
    Karnataka High Court provider, ``portal_availability`` for manual import).
    """
    cls = PROVIDERS.get(type_tag)
    if cls is None:
        raise UnknownProviderTypeError(type_tag)
    logger.debug("Creating %s provider", type_tag)
    return cls(config, context, **options)


def list_available_provider_types() -> list[str]:
    return list(PROVIDERS)
