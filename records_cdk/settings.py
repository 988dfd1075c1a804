from dataclasses import dataclass, replace
from typing import Tuple

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class RecordsApiSettings:
    """Configuración de un despliegue: API, tabla, función y esquema del registro."""

    api_name: str
    description: str
    collection: str
    table_name: str
    function_name: str
    record_fields: Tuple[str, ...]
    allowed_origin: str = "http://localhost:3000"
    allow_credentials: bool = False
    require_auth: bool = False
    callback_url: str = "http://localhost:8080/"
    stage_name: str = "dev"
    log_level: str = "INFO"

    def __post_init__(self):
        # logging solo acepta los nombres de nivel en mayúsculas
        level = str(self.log_level).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level!r}")
        object.__setattr__(self, "log_level", level)

    def lambda_environment(self, table_name: str) -> dict:
        return {
            "TABLE_NAME": table_name,
            "COLLECTION": self.collection,
            "RECORD_FIELDS": ",".join(self.record_fields),
            "ALLOWED_ORIGIN": self.allowed_origin,
            "ALLOW_CREDENTIALS": "true" if self.allow_credentials else "false",
            "LOG_LEVEL": self.log_level,
        }


# Blog con autenticación Cognito en todas las rutas
BLOG_API = RecordsApiSettings(
    api_name="api-blog",
    description="api blog to test serverless app",
    collection="posts",
    table_name="blogdb",
    function_name="crudLambdaFn",
    record_fields=("postTitle", "postDescription"),
    allow_credentials=True,
    require_auth=True,
)

# Catálogo de items sin autenticación
ITEMS_API = RecordsApiSettings(
    api_name="tutorial-api",
    description="tutorial api gateway",
    collection="items",
    table_name="tutorial-items",
    function_name="tutorial-function",
    record_fields=("name", "price"),
)

# Claves de contexto CDK (-c clave=valor) -> campo de RecordsApiSettings
CONTEXT_OVERRIDES = {
    "allowedOrigin": "allowed_origin",
    "stageName": "stage_name",
    "logLevel": "log_level",
}


def with_context_overrides(app, settings: RecordsApiSettings) -> RecordsApiSettings:
    overrides = {}
    for context_key, field in CONTEXT_OVERRIDES.items():
        value = app.node.try_get_context(context_key)
        if value is not None:
            overrides[field] = value
    return replace(settings, **overrides)
