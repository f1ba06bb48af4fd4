"""Configuración central basada en variables de entorno."""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Valores globales leídos desde `.env` o el entorno."""

    environment: str = "development"
    log_level: str | None = Field(
        default=None,
        description="Nivel de logging global (ej. debug, info, warning). Cuando no se define, usa un valor por ambiente.",
    )
    log_file_path: str | None = Field(
        default=None,
        description="Archivo principal de logs. Sin valor sólo se escribe en stdout.",
    )
    request_log_skip_prefixes: tuple[str, ...] = Field(
        default=(
            "/event-stream",
            "/health",
            "/favicon",
            "/css",
            "/js",
            "/img",
        ),
        description="Prefijos de ruta para los que no se registrarán eventos de request.started/completed.",
    )

    enablex_app_id: str | None = None
    enablex_app_key: str | None = None
    voice_api_url: str = "https://api.enablex.io/voice/v1/call"
    voice_api_timeout_seconds: float = 10.0
    video_room_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("VIDEO_ROOMID", "VIDEO_ROOM_ID", "video_room_id"),
    )

    service_host: str = "0.0.0.0"
    service_port: int = 3000
    listen_ssl: bool = False
    certificate_ssl_key: str | None = None
    certificate_ssl_cert: str | None = None
    certificate_ssl_cacerts: str | None = None
    public_webhook_host: str | None = None
    client_dir: str = "client"

    join_timeout_seconds: float = Field(
        default=20.0,
        description="Segundos que la llamada permanece en la sala de video antes de colgarla.",
    )
    shutdown_grace_seconds: float = Field(
        default=10.0,
        description="Tiempo máximo para el cierre ordenado antes de forzar la salida del proceso.",
    )
    stream_queue_size: int = Field(default=100, ge=1)
    stream_backlog: int = Field(
        default=50,
        ge=0,
        description="Mensajes retenidos para repetir a suscriptores que se conectan tarde.",
    )
    stream_heartbeat_seconds: float = 15.0
    action_retries: int = Field(
        default=2,
        ge=0,
        description="Reintentos adicionales para acciones idempotentes (aceptar, unir a sala).",
    )
    action_retry_delay_seconds: float = 1.0

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    @property
    def has_credentials(self) -> bool:
        return bool(self.enablex_app_id and self.enablex_app_key)

    @property
    def webhook_url(self) -> str | None:
        if not self.public_webhook_host:
            return None
        return f"{self.public_webhook_host.rstrip('/')}/event"


settings = Settings()
