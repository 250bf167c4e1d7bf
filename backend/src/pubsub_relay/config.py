"""
Configuration settings for the relay.
"""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class RelaySettings(BaseSettings):
    """
    Relay configuration loaded from environment variables (RELAY_*).
    """
    model_config = ConfigDict(
        env_prefix="RELAY_",
        env_file=".env",
        case_sensitive=False,
    )

    # Server settings
    host: str = "0.0.0.0"
    port: int = 4000
    ws_path: str = "/graphql"
    debug: bool = False
    health_text: str = "GraphQL WebSocket server is running"

    # Sample event generators
    sample_generators_enabled: bool = True
    message_interval: float = 5.0  # seconds
    status_interval: float = 7.0
    settings_interval: float = 9.0


# Global settings instance
settings = RelaySettings()
