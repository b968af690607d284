"""
========================================
CONFIGURATION MODULE
========================================
Централизованная конфигурация приложения
с поддержкой переменных окружения (.env)
"""

import os
from dotenv import load_dotenv

# Загружаем переменные окружения из .env
env_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)


def _env_flag(name, default="False"):
    return os.getenv(name, default).lower() == "true"


class Config:
    """Базовая конфигурация"""

    # ========================================
    # ОСНОВНЫЕ НАСТРОЙКИ
    # ========================================
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
    DEBUG = _env_flag("DEBUG")
    TESTING = False

    # ========================================
    # БАЗА ДАННЫХ
    # ========================================
    DB_HOST = os.getenv("DB_HOST", "127.0.0.1")
    DB_PORT = int(os.getenv("DB_PORT", "3306"))
    DB_USER = os.getenv("DB_USER", "root")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")
    DB_NAME = os.getenv("DB_NAME", "tg_feedbacks")

    # DATABASE_URL wins over the DB_* parts when set
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        f"mysql+pymysql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        "?charset=utf8mb4",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_size": 10,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
        "max_overflow": 20,
        "echo": False,
    }

    # ========================================
    # БЕЗОПАСНОСТЬ И АУТЕНТИФИКАЦИЯ
    # ========================================
    SESSION_TOKEN_EXPIRES_HOURS = int(os.getenv("SESSION_TOKEN_EXPIRES_HOURS", "24"))
    PASSWORD_MIN_LENGTH = int(os.getenv("PASSWORD_MIN_LENGTH", "6"))

    # Регистрация с этим адресом получает роль ADMIN
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "")

    # ========================================
    # CORS
    # ========================================
    CORS_ENABLED = _env_flag("CORS_ENABLED", "True")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]
    CORS_ALLOW_HEADERS = ["Content-Type", "Authorization", "X-Requested-With"]
    CORS_SUPPORTS_CREDENTIALS = True

    # ========================================
    # СЕРВЕР
    # ========================================
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "5000"))

    # ========================================
    # ЛОГИРОВАНИЕ
    # ========================================
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE", "logs/app.log")
    LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "10485760"))  # 10MB
    LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))

    # ========================================
    # API
    # ========================================
    APP_NAME = "TG Feedbacks"
    API_VERSION = "1.0.0"
    RECENT_ACTIVITY_LIMIT = int(os.getenv("RECENT_ACTIVITY_LIMIT", "10"))
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", "1048576"))  # 1MB

    @staticmethod
    def init_app(app):
        """Инициализация приложения с конфигурацией"""
        log_dir = os.path.dirname(app.config["LOG_FILE"])
        if log_dir and not app.config["TESTING"]:
            os.makedirs(log_dir, exist_ok=True)


class DevelopmentConfig(Config):
    """Конфигурация для разработки"""

    DEBUG = True


class ProductionConfig(Config):
    """Конфигурация для продакшена"""

    DEBUG = False

    @staticmethod
    def init_app(app):
        Config.init_app(app)

        if app.config["SECRET_KEY"] == "dev-secret-key-change-in-production":
            app.logger.warning("⚠️  Using default SECRET_KEY in production!")


class TestingConfig(Config):
    """Конфигурация для тестирования: in-memory SQLite"""

    TESTING = True
    DEBUG = False

    SECRET_KEY = "testing-secret-key-for-tg-feedbacks-api"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    # pool options of the MySQL engine do not apply to SQLite's StaticPool
    SQLALCHEMY_ENGINE_OPTIONS = {}
    ADMIN_EMAIL = "admin@tg-feedbacks.test"
    PASSWORD_MIN_LENGTH = 6
    CORS_ENABLED = False


# ========================================
# ЭКСПОРТ КОНФИГУРАЦИЙ
# ========================================
config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}

__all__ = [
    "Config",
    "DevelopmentConfig",
    "ProductionConfig",
    "TestingConfig",
    "config",
]
