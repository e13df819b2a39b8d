import json
import os
import tempfile
from pathlib import Path
from typing import Optional
from pydantic import BaseModel
from loguru import logger

DEFAULT_BASE_URL = "https://book.lakemcclure.com/campgrounds/barrett-cove-camping-recreation"

class Config(BaseModel):
    """Configuration model for Campsite Checker."""
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 900
    page_timeout_ms: int = 60000
    settle_delay_ms: int = 3000
    results_wait_ms: int = 15000
    screenshot_path: str = os.path.join(tempfile.gettempdir(), "campcheck-results.png")
    deep_inspection: bool = False
    webhook_url: Optional[str] = None

class ConfigManager:
    """Manages configuration loading and saving."""

    def __init__(self, config_path: str = None):
        if config_path is None:
            config_path = os.path.join(Path.home(), ".campsite_checker_config.json")
        self.config_path = config_path
        self.config = self._load_config()

    def _load_config(self) -> Config:
        """Load configuration from file or create default."""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                logger.debug(f"Loaded config from {self.config_path}")
                return Config(**data)
            except Exception as e:
                logger.warning(f"Failed to load config: {e}. Using defaults.")

        config = Config()
        self._save_config(config)
        return config

    def _save_config(self, config: Config):
        """Save configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(config.model_dump(), f, indent=2)
            logger.debug(f"Saved config to {self.config_path}")
        except Exception as e:
            logger.error(f"Failed to save config: {e}")

    def get_config(self) -> Config:
        """Get current configuration."""
        return self.config

    def update_config(self, **kwargs):
        """Update configuration with new values and persist them."""
        data = self.config.model_dump()
        data.update(kwargs)
        self.config = Config(**data)
        self._save_config(self.config)
