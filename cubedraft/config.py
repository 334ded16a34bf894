from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CubeDraft"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/cubedraft"

    card_data_path: str = "data/default-cards.json"

    recommender_url: str = "http://localhost:5000"
    recommender_timeout: float = 10.0
    public_host: str = "http://localhost:8000"

    default_pack_size: int = 15
    default_num_packs: int = 3
    default_seat_count: int = 8
    max_seat_count: int = 16

    default_bot_kind: str = "rating"

    elo_base: float = 1200.0
    elo_k_factor: float = 4.0
    elo_scale: float = 400.0

    # Attempts for a versioned read-modify-write before giving up
    cas_max_attempts: int = 3


settings = Settings()


# =============================================================================
# FEATURED QUEUE
# =============================================================================

# The first N queue entries are the currently featured cubes
FEATURED_PROTECTED_SLOTS = 2

DEFAULT_DAYS_BETWEEN_ROTATIONS = 7
