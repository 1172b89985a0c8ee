"""Runtime configuration for the autonomous agent."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="MC_AUTONOMY_", env_file=".env", extra="ignore")

    app_name: str = "mc-autonomy"
    log_level: str = "INFO"
    username: str = "AutonomousAI"
    host: str = "localhost"
    port: int = 25565
    minecraft_version: str = "1.20.2"
    auth: str = "offline"
    tick_interval_seconds: float = Field(default=10.0, gt=0, description="Delay between decision ticks.")
    startup_delay_seconds: float = Field(default=3.0, ge=0, description="Pause between spawn and the first tick.")
    reconnect_delay_seconds: float = Field(default=5.0, ge=0)
    block_scan_radius: int = Field(default=20, gt=0)
    entity_scan_radius: float = Field(default=15.0, gt=0)
    save_every: int = Field(default=10, gt=0, description="Persist skills every N completed actions.")
    history_size: int = Field(default=20, gt=0)
    skills_dir: str = Field(default=".", description="Directory holding <username>_skills.json files.")


settings = Settings()
