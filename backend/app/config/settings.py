from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # T-Soft REST1 upstream
    ts_base_url: str = "https://maxstyle.com.tr"
    ts_api_prefix: str = "/rest1"
    ts_username: str = ""
    ts_password: str = ""

    # Image hosts used when normalising product image URLs
    ts_cdn_url: str = "https://maxstyle.tsoftcdn.com"
    ts_web_url: str = "https://maxstyle.com.tr/"
    placeholder_image_url: str = "https://via.placeholder.com/400x400.png?text=Gorsel+Yok"

    # Upstream call behaviour
    upstream_timeout_seconds: float = 10.0
    token_ttl_seconds: int = 25 * 60        # kept shorter than the upstream session lifetime
    token_refresh_margin_seconds: int = 30

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000
    static_dir: str = "public"
    log_level: str = "INFO"

    # Order form PDF; Helvetica is used when no TrueType font is given
    pdf_font_path: str | None = None

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    def ts_url(self, api_path: str) -> str:
        """Join base URL, API prefix and an API path into a full upstream URL."""
        base = self.ts_base_url.rstrip("/")
        prefix = self.ts_api_prefix if self.ts_api_prefix.startswith("/") else f"/{self.ts_api_prefix}"
        path = api_path if api_path.startswith("/") else f"/{api_path}"
        return f"{base}{prefix}{path}"


settings = Settings()
