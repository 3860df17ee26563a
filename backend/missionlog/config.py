from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Missionlog Document API"
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    cors_origins: str = "http://localhost:3000"
    cors_allow_credentials: bool = True
    log_level: str = "INFO"
    request_id_header: str = "X-Request-ID"

    # Tier 2 of template resolution. Leave the base URL empty to go straight
    # from custom templates to the embedded one (offline deployments).
    template_asset_base_url: str = ""
    template_asset_path: str = "/default.docx"
    template_asset_min_bytes: int = 100
    template_fetch_timeout_seconds: float = 5.0

    max_template_upload_bytes: int = 10 * 1024 * 1024
    max_batch_missions: int = 1000

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def template_asset_url(self) -> str:
        base = self.template_asset_base_url.strip().rstrip("/")
        if not base:
            return ""
        path = self.template_asset_path.strip() or "/default.docx"
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{base}{path}"


settings = Settings()
