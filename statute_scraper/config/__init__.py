from statute_scraper.config.settings import Config

__all__ = ["Config"]
