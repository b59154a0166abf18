"""Provider adapters and the registry that picks one from configuration."""

from typing import Callable, Dict, List

from ..config import Settings
from ..errors import ConfigurationError
from .base import ProviderAdapter, first_non_empty, first_output
from .replicate import ReplicateAdapter
from .runway import RunwayAdapter
from .wavespeed import WavespeedAdapter

_REGISTRY: Dict[str, Callable[[Settings], ProviderAdapter]] = {
    "runway": lambda s: RunwayAdapter(
        s.runway_api_key, s.runway_base_url, model=s.runway_model, api_version=s.runway_api_version
    ),
    "wavespeed": lambda s: WavespeedAdapter(
        s.wavespeed_api_key, s.wavespeed_base_url, endpoint_path=s.wavespeed_endpoint
    ),
    "replicate": lambda s: ReplicateAdapter(
        s.replicate_api_token, s.replicate_base_url, model=s.replicate_model
    ),
}


def register_adapter(name: str, factory: Callable[[Settings], ProviderAdapter]) -> None:
    _REGISTRY[name.lower()] = factory


def available_providers() -> List[str]:
    return sorted(_REGISTRY)


def get_adapter(name: str, settings: Settings) -> ProviderAdapter:
    factory = _REGISTRY.get((name or "").lower())
    if factory is None:
        raise ConfigurationError(f"Unknown video provider '{name}'", payload={"available": available_providers()})
    return factory(settings)


__all__ = [
    "ProviderAdapter",
    "RunwayAdapter",
    "WavespeedAdapter",
    "ReplicateAdapter",
    "available_providers",
    "first_non_empty",
    "first_output",
    "get_adapter",
    "register_adapter",
]
