from __future__ import annotations
from careersync.core.config import settings
from careersync.crawlers.adapters.ashby import AshbyAdapter
from careersync.crawlers.adapters.comeet import ComeetAdapter
from careersync.crawlers.adapters.greenhouse import GreenhouseAdapter
from careersync.crawlers.adapters.lever import LeverAdapter
from careersync.crawlers.adapters.paylocity import PaylocityAdapter
from careersync.crawlers.adapters.personio import PersonioAdapter
from careersync.crawlers.adapters.pinpoint import PinpointAdapter
from careersync.crawlers.adapters.recruitee import RecruiteeAdapter
from careersync.crawlers.adapters.rippling import RipplingAdapter
from careersync.crawlers.adapters.smartrecruiters import SmartRecruitersAdapter
from careersync.crawlers.adapters.successfactors import SuccessFactorsAdapter
from careersync.crawlers.adapters.workable import WorkableAdapter
from careersync.crawlers.adapters.workday import WorkdayAdapter
from careersync.crawlers.base import ProviderAdapter

ADAPTERS = {
    "workable": WorkableAdapter,
    "greenhouse": GreenhouseAdapter,
    "lever": LeverAdapter,
    "ashby": AshbyAdapter,
    "recruitee": RecruiteeAdapter,
    "smartrecruiters": SmartRecruitersAdapter,
    "personio": PersonioAdapter,
    "pinpoint": PinpointAdapter,
    "rippling": RipplingAdapter,
    "workday": WorkdayAdapter,
    "successfactors": SuccessFactorsAdapter,
    "comeet": ComeetAdapter,
    "paylocity": PaylocityAdapter,
}

# one instance per provider so adapter-scoped state (Lever's limiter) is shared across domains
_instances: dict[str, ProviderAdapter] = {}


def get_adapter(provider: str) -> ProviderAdapter:
    if provider not in ADAPTERS:
        raise KeyError(f"unknown provider {provider!r}")
    if provider not in _instances:
        _instances[provider] = ADAPTERS[provider]()
    return _instances[provider]


def provider_order(priority: list[str] | None = None) -> list[str]:
    """Configured priority first, then any registered provider it leaves out."""
    configured = [name for name in (priority or settings.provider_priority) if name in ADAPTERS]
    rest = [name for name in ADAPTERS if name not in configured]
    return list(dict.fromkeys(configured + rest))


def ordered_adapters(priority: list[str] | None = None) -> list[ProviderAdapter]:
    return [get_adapter(name) for name in provider_order(priority)]
