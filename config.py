from enum import Enum
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SWIPECHEF_")

    env: Env = Env.local
    log_level: str = "INFO"
    html_dir: Path = Path(__file__).parent / "assets" / "html"

    api_base_url: str = "http://localhost:3000"
    api_timeout: float = 5.0
    suggestion_timeout: float = 60.0
    recipe_timeout: float = 60.0

    core_model: str = "gpt-4-turbo-preview"
    # Talk to OpenAI directly instead of the server's generation endpoint.
    direct_llm: bool = False

    # What the host reports about itself; picks touch or pointer input.
    user_agent: str = ""
    max_touch_points: int = 0

    max_vibe_rounds: int = 2
    suggestion_count: int = 5
    max_favorites: int = 20
    state_history_size: int = 50

    # Gesture tuning, pixels and px/ms.
    swipe_threshold: float = 120
    swipe_velocity_threshold: float = 0.5
    swipe_velocity_floor: float = 50
    gesture_dead_zone: float = 8
    glow_max_distance: float = 150
