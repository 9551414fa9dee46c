from dataclasses import dataclass, field
from environs import Env

@dataclass
class DBConfig:
    """ PostgreSQL """
    host: str | None = None
    port: int | None = None
    name: str | None = None
    user: str | None = None
    password: str | None = None

    """ SQLite """
    path: str | None = 'data/messenger.db'

    @property
    def is_postgres(self) -> bool:
        return bool(self.host)

    @property
    def url(self) -> str:
        if self.is_postgres:
            return f"postgresql+asyncpg://{self.user}:{self.password or ''}@{self.host}:{self.port}/{self.name}"
        return f"sqlite+aiosqlite:///{self.path}"

@dataclass
class UIConfig:
    page_size: int = 10
    wrap_width: int = 40

@dataclass
class LogConfig:
    level: str = 'WARNING'

@dataclass
class Config:
    """ Config """
    db: DBConfig
    ui: UIConfig = field(default_factory=UIConfig)
    log: LogConfig = field(default_factory=LogConfig)

def load_config(path: str | None = None) -> Config:
    env = Env()
    env.read_env(path)

    return Config(
        db=DBConfig(
            host=env('DB_HOST', None),
            port=env.int('DB_PORT', None),
            name=env('DB_NAME', None),
            user=env('DB_USER', None),
            password=env('DB_PASSWORD', None),
            path=env('DB_PATH', 'data/messenger.db')
        ),
        ui=UIConfig(
            page_size=env.int('MESSENGER_PAGE_SIZE', 10),
            wrap_width=env.int('MESSENGER_WRAP_WIDTH', 40)
        ),
        log=LogConfig(
            level=env('LOG_LEVEL', 'WARNING')
        )
    )
