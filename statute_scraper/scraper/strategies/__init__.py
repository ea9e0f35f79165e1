"""Jurisdiction strategies and the registry that picks one per scrape."""

from typing import Callable, Dict, List, Optional, Type

from statute_scraper.config.settings import Config
from statute_scraper.scraper.strategies.base import (
    ScrapeCancelled,
    StatuteStrategy,
    StrategyContext,
)
from statute_scraper.scraper.strategies.california import CaliforniaStrategy
from statute_scraper.scraper.strategies.justia import JustiaStrategy
from statute_scraper.scraper.strategies.state_sites import (
    FloridaStrategy,
    IllinoisStrategy,
    MichiganStrategy,
    NewYorkStrategy,
    NorthCarolinaStrategy,
    OhioStrategy,
)
from statute_scraper.scraper.strategies.texas import TexasStrategy
from statute_scraper.utils.logger import get_logger

StrategyFactory = Callable[[StrategyContext], StatuteStrategy]

DEFAULT_STRATEGIES: Dict[str, StrategyFactory] = {
    'CA': CaliforniaStrategy,
    'TX': TexasStrategy,
    'FL': FloridaStrategy,
    'NY': NewYorkStrategy,
    'IL': IllinoisStrategy,
    'OH': OhioStrategy,
    'NC': NorthCarolinaStrategy,
    'MI': MichiganStrategy,
}


class StrategyRegistry:
    """
    Maps jurisdiction codes to strategy factories.

    A jurisdiction goes to the fallback source when the caller asks for it,
    when config routes it there (``routing.via_fallback``), when its direct
    source is disabled, or when it has no direct strategy at all.
    """

    def __init__(
        self,
        config: Config,
        strategies: Optional[Dict[str, StrategyFactory]] = None,
        fallback: Optional[Type[JustiaStrategy]] = JustiaStrategy,
    ):
        self.config = config
        self.fallback = fallback
        self._factories: Dict[str, StrategyFactory] = {}
        self.logger = get_logger(f"statute_scraper.strategies.{self.__class__.__name__}")
        for code, factory in (DEFAULT_STRATEGIES if strategies is None else strategies).items():
            self.register(code, factory)

    def register(self, jurisdiction: str, factory: StrategyFactory):
        self._factories[jurisdiction.upper()] = factory

    def codes(self) -> List[str]:
        """Jurisdictions with a direct strategy."""
        return sorted(self._factories)

    def _direct_factory(self, jurisdiction: str, use_fallback: bool) -> Optional[StrategyFactory]:
        factory = self._factories.get(jurisdiction)
        if factory is None or use_fallback:
            return None
        if jurisdiction in self.config.routed_via_fallback:
            return None
        if not self.config.source_enabled(jurisdiction):
            return None
        return factory

    def _fallback_available(self, jurisdiction: str) -> bool:
        return self.fallback is not None and self.fallback.supports(jurisdiction, self.config)

    def has_strategy(self, jurisdiction: str, use_fallback: bool = False) -> bool:
        code = jurisdiction.upper()
        return self._direct_factory(code, use_fallback) is not None or self._fallback_available(code)

    def resolve(self, jurisdiction: str, context: StrategyContext, use_fallback: bool = False) -> Optional[StatuteStrategy]:
        """Build the strategy for ``jurisdiction``, or None when nothing can scrape it."""
        code = jurisdiction.upper()
        factory = self._direct_factory(code, use_fallback)
        if factory is not None:
            return factory(context)
        if self._fallback_available(code):
            self.logger.info(f"Using fallback source {self.fallback.name} for {code}")
            return self.fallback(context, code)
        return None


__all__ = [
    'DEFAULT_STRATEGIES',
    'ScrapeCancelled',
    'StatuteStrategy',
    'StrategyContext',
    'StrategyRegistry',
]
