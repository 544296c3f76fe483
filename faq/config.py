# faq/config.py
"""
Configuration loading.

Settings come from an optional JSON file (camelCase keys such as
"captchaClient") and are then overridden by environment variables.
A configuration that cannot be loaded is the only fatal error of the
service and surfaces as ConfigurationError at startup.
"""

import json
import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

DATA_DIR = "data"

ENV_OVERRIDES = {
    "FAQ_ADMIN_LOGIN": "admin_login",
    "FAQ_ADMIN_PASSWORD": "admin_password",
    "FAQ_BACKEND": "backend",
    "FAQ_DATABASE": "database",
    "SECRET_KEY": "secret_key",
    "NTFY_TOPIC": "ntfy_topic",
}


class ConfigurationError(Exception):
    pass


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    captcha_client: str = Field(default="", alias="captchaClient")
    captcha_secret: str = Field(default="", alias="captchaSecret")
    admin_login: str = Field(default="admin", alias="adminLogin")
    admin_password: str = Field(alias="adminPassword")
    cooldown_minutes: int = Field(default=1440, alias="visitorsAskingDelay", ge=0)
    show_submission_form: bool = Field(default=False, alias="visitorsCanAskQuestions")
    ip_protection: bool = Field(default=True, alias="ipProtection")

    backend: Literal["sqlite", "sheet"] = "sqlite"
    database: str = os.path.join(DATA_DIR, "faq.db")

    spreadsheet_id: str = Field(default="", alias="spreadsheetId")
    api_key: str = Field(default="", alias="apikey")
    tab: str = "Sheet1"
    fields: str = "A1:G1"
    service_account: str = Field(default="", alias="serviceAccount")
    private_key: str = Field(default="", alias="privateKey")

    http_timeout: float = Field(default=10.0, alias="httpTimeout", gt=0)
    secret_key: Optional[str] = Field(default=None, alias="secretKey")
    ntfy_topic: str = Field(default="", alias="ntfyTopic")

    @model_validator(mode="after")
    def check_backend_fields(self):
        if self.backend == "sheet":
            missing = [
                name
                for name in ("spreadsheet_id", "api_key", "service_account", "private_key")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"sheet backend requires: {', '.join(missing)}")
        return self


def load_settings(path: Optional[str] = None, environ: Mapping[str, str] = os.environ) -> Settings:
    path = path or environ.get("FAQ_CONFIG")
    data: dict = {}
    if path:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must hold a JSON object")

    for env_name, field in ENV_OVERRIDES.items():
        if environ.get(env_name):
            data[Settings.model_fields[field].alias or field] = environ[env_name]

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
