import os
from dotenv import load_dotenv

load_dotenv()

DEFAULT_REDIRECT_URI = 'http://127.0.0.1:8888/callback'


def _env_bool(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Base configuration."""
    SPOTIFY_CLIENT_ID = os.getenv('SPOTIFY_CLIENT_ID')
    SPOTIFY_CLIENT_SECRET = os.getenv('SPOTIFY_CLIENT_SECRET')
    SPOTIFY_REDIRECT_URI = os.getenv('SPOTIFY_REDIRECT_URI') or DEFAULT_REDIRECT_URI
    # Space-separated override of the default scope list
    SPOTIFY_SCOPES = os.getenv('SPOTIFY_SCOPES')

    # OAuth callback settings
    CALLBACK_TIMEOUT = int(os.getenv('CALLBACK_TIMEOUT', 300))  # seconds
    TOKEN_REFRESH_MARGIN = int(os.getenv('TOKEN_REFRESH_MARGIN', 60))  # seconds
    OPEN_BROWSER = _env_bool('OPEN_BROWSER', True)

    # Export settings
    EXPORT_DIR = os.getenv('EXPORT_DIR', os.path.join(os.path.expanduser('~'), 'Downloads'))

    # Application settings
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    DEBUG = False
    TESTING = False

    @classmethod
    def as_dict(cls) -> dict:
        """Return the upper-case settings as a plain dictionary."""
        return {
            key: getattr(cls, key)
            for key in dir(cls)
            if key.isupper()
        }


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    DEBUG = True
    SPOTIFY_CLIENT_ID = 'test_client_id'
    SPOTIFY_CLIENT_SECRET = 'test_client_secret'
    SPOTIFY_REDIRECT_URI = DEFAULT_REDIRECT_URI
    CALLBACK_TIMEOUT = 5
    OPEN_BROWSER = False


def validate_required_env_vars(config_class=Config) -> list:
    """
    Return the names of required settings that are missing.

    The redirect URI always has a default, so only the client
    credentials can be reported here.
    """
    required = ['SPOTIFY_CLIENT_ID', 'SPOTIFY_CLIENT_SECRET']
    return [name for name in required if not getattr(config_class, name, None)]


# Dictionary for easy config selection
config = {
    'development': DevelopmentConfig,
    'production': Config,
    'testing': TestingConfig,
    'default': Config
}
