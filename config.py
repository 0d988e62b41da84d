
from dataclasses import dataclass
import os

@dataclass
class AwsConfig:
    access_key_id: str
    secret_access_key: str
    region: str

@dataclass
class JwtConfig:
    secret: str
    expiration: int

@dataclass
class PostgresConfig:
    host: str
    port: int
    database: str
    username: str
    password: str
    url: str | None = None

    @property
    def db_url(self) -> str:
        """The SQLAlchemy URL of the database, either set explicitly or built from the connection parts."""
        if self.url:
            return self.url
        return f'postgresql://{self.username}:{self.password}@{self.host}:{self.port}/{self.database}'

@dataclass
class AppConfig:
    timezone: str
    log_level: str
    default_page_size: int
    max_page_size: int
    presign_images: bool
    presign_expiry: int

@dataclass
class TestConfig:
    username: str

@dataclass
class Config:
    aws: AwsConfig
    jwt: JwtConfig
    postgres: PostgresConfig
    app: AppConfig
    test: TestConfig

def _load_from_file(target = 'config.ini') -> Config:
    import configparser
    _config = configparser.ConfigParser()
    _config.read(target)

    return Config(
        aws=AwsConfig(
            access_key_id=_config['AWS']['ACCESS_KEY_ID'],
            secret_access_key=_config['AWS']['SECRET_ACCESS_KEY'],
            region=_config['AWS']['REGION']
        ),
        jwt=JwtConfig(
            secret=os.getenv('JWT_SECRET', _config['JWT']['SECRET']),
            expiration=int(_config['JWT']['EXPIRATION'])
        ),
        postgres=PostgresConfig(
            host=_config['POSTGRES']['HOST'],
            port=int(_config['POSTGRES']['PORT']),
            database=_config['POSTGRES']['DATABASE'],
            username=_config['POSTGRES']['USERNAME'],
            password=_config['POSTGRES']['PASSWORD'],
            url=os.getenv('DATABASE_URL', _config['POSTGRES'].get('URL') or None)
        ),
        app=AppConfig(
            timezone=_config['APP'].get('TIMEZONE', 'UTC'),
            log_level=_config['APP'].get('LOG_LEVEL', 'INFO'),
            default_page_size=_config['APP'].getint('DEFAULT_PAGE_SIZE', 10),
            max_page_size=_config['APP'].getint('MAX_PAGE_SIZE', 1000),
            presign_images=_config['APP'].getboolean('PRESIGN_IMAGES', False),
            presign_expiry=_config['APP'].getint('PRESIGN_EXPIRY', 3600)
        ),
        test=TestConfig(
            username=_config['TEST']['USERNAME']
        )
    )

_ROOT = os.path.dirname(os.path.abspath(__file__))
_CONFIG_FILE = os.path.join(_ROOT, 'config.ini')
_SAMPLE_CONFIG_FILE = os.path.join(_ROOT, 'sample_config.ini')

if os.getenv('ENV') == 'documentation' or not os.path.exists(_CONFIG_FILE):
    config = _load_from_file(_SAMPLE_CONFIG_FILE)
else:
    config = _load_from_file(_CONFIG_FILE)
