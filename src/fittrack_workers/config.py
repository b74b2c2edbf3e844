import os
from dataclasses import dataclass

STORAGE_BACKENDS: tuple[str, ...] = ("json", "memory", "postgres")
LOG_FORMATS: tuple[str, ...] = ("json", "text")
LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR")


def _choice(name: str, default: str, allowed: tuple[str, ...], normalize=str.lower) -> str:
    value = normalize(os.environ.get(name, default).strip())
    if value not in allowed:
        raise RuntimeError(f"{name} must be one of {', '.join(allowed)} (got {value!r})")
    return value


@dataclass(frozen=True)
class Config:
    storage_backend: str = "json"
    data_dir: str = ".fittrack"
    database_url: str | None = None
    log_format: str = "json"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        storage_backend = _choice("FITTRACK_STORAGE", "json", STORAGE_BACKENDS)

        database_url = os.environ.get("DATABASE_URL") or None
        if storage_backend == "postgres" and not database_url:
            raise RuntimeError("DATABASE_URL must be set")

        return cls(
            storage_backend=storage_backend,
            data_dir=os.environ.get("FITTRACK_DATA_DIR", ".fittrack"),
            database_url=database_url,
            log_format=_choice("FITTRACK_LOG_FORMAT", "json", LOG_FORMATS),
            log_level=_choice("FITTRACK_LOG_LEVEL", "INFO", LOG_LEVELS, normalize=str.upper),
        )
