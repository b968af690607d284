"""
===============================================================================
TG Feedbacks API
===============================================================================

Фабрика приложения Flask.

ВОЗМОЖНОСТИ:
- Комментарии к записям с вложенными ответами (sub-comments)
- Ролевой доступ USER / ADMIN
- Статистика для администраторов
- SQLAlchemy 2.0+ / Flask-SQLAlchemy 3
- CORS, логирование запросов, единый формат ошибок
===============================================================================
"""

import logging
import os
from datetime import datetime
from logging.handlers import RotatingFileHandler

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from sqlalchemy import text

from config import config
from models.database import db
from utils.errors import ApiError
from utils.helpers import (
    create_api_error_response,
    create_error_response,
    generate_request_id,
    get_client_ip,
)

logger = logging.getLogger(__name__)


# =============================================================================
# ФАБРИКА ПРИЛОЖЕНИЯ
# =============================================================================
def create_app(config_name=None):
    """
    Фабрика приложения Flask

    Args:
        config_name: Имя конфигурации (development, production, testing)

    Returns:
        Flask приложение с настроенными компонентами
    """
    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    config_class = config.get(config_name, config["default"])
    app.config.from_object(config_class)
    config_class.init_app(app)

    db.init_app(app)

    if app.config.get("CORS_ENABLED"):
        CORS(
            app,
            origins=app.config["CORS_ORIGINS"],
            methods=app.config["CORS_METHODS"],
            allow_headers=app.config["CORS_ALLOW_HEADERS"],
            supports_credentials=app.config["CORS_SUPPORTS_CREDENTIALS"],
        )

    setup_logging(app)
    register_blueprints(app)
    register_api_routes(app)
    register_error_handlers(app)
    register_request_handlers(app)

    with app.app_context():
        db.create_all()
        app.logger.info("✅ Таблицы БД проверены/созданы")

    return app


def setup_logging(app):
    """Настройка системы логирования"""
    level = app.config.get("LOG_LEVEL", "INFO")

    if app.debug or app.testing:
        return

    log_file = app.config["LOG_FILE"]
    handler = RotatingFileHandler(
        log_file,
        maxBytes=app.config["LOG_MAX_BYTES"],
        backupCount=app.config["LOG_BACKUP_COUNT"],
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s [in %(pathname)s:%(lineno)d]"
        )
    )
    handler.setLevel(level)

    # app.logger propagates to the root logger, so module loggers and the
    # Flask logger end up in the same file
    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    app.logger.setLevel(level)

    app.logger.info(f"🚀 {app.config['APP_NAME']} API запущен")


def register_blueprints(app):
    """Регистрация blueprints"""
    from blueprints import comments_bp, statistics_bp, users_bp

    app.register_blueprint(users_bp, url_prefix="/api/auth")
    app.register_blueprint(comments_bp, url_prefix="/api/comments")
    app.register_blueprint(statistics_bp, url_prefix="/api/stats")


def register_api_routes(app):
    @app.route("/health")
    @app.route("/api/health")
    def health_check():
        """
        Проверка состояния (health-check) API и базы данных.

        curl -X GET "http://localhost:5000/health"
        """
        try:
            result = db.session.execute(text("SELECT 1")).scalar()
            db_status = "healthy" if result == 1 else "degraded"
        except Exception as e:
            db.session.rollback()
            logger.error(f"❌ Database health check failed: {e}")
            db_status = "unavailable"

        healthy = db_status == "healthy"
        return (
            jsonify(
                {
                    "status": "healthy" if healthy else "degraded",
                    "database": db_status,
                    "service": app.config["APP_NAME"],
                    "version": app.config["API_VERSION"],
                    "timestamp": datetime.utcnow().isoformat(),
                }
            ),
            200 if healthy else 503,
        )


def register_error_handlers(app):
    """Регистрация обработчиков ошибок"""

    @app.errorhandler(ApiError)
    def api_error(error):
        return create_api_error_response(error)

    @app.errorhandler(400)
    def bad_request(error):
        return create_error_response("Bad request", 400, kind="ValidationError")

    @app.errorhandler(401)
    def unauthorized(error):
        return create_error_response(
            "Authentication required", 401, kind="AuthenticationError"
        )

    @app.errorhandler(403)
    def forbidden(error):
        return create_error_response("Not authorized", 403, kind="ForbiddenError")

    @app.errorhandler(404)
    def not_found(error):
        return create_error_response("Resource not found", 404, kind="NotFoundError")

    @app.errorhandler(405)
    def method_not_allowed(error):
        return create_error_response("Method not allowed", 405)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        original = getattr(error, "original_exception", None) or error
        app.logger.error(f"❌ Internal server error: {original}", exc_info=original)
        return create_error_response("Internal server error", 500)


def register_request_handlers(app):
    """Регистрация обработчиков запросов/ответов"""

    @app.before_request
    def before_request():
        g.request_id = request.headers.get("X-Request-ID") or generate_request_id()
        g.request_start_time = datetime.utcnow()
        g.client_ip = get_client_ip()

        app.logger.info(f"[{g.request_id}] {request.method} {request.path} от {g.client_ip}")

    @app.after_request
    def after_request(response):
        if hasattr(g, "request_id"):
            response.headers["X-Request-ID"] = g.request_id

        if hasattr(g, "request_start_time"):
            duration = (datetime.utcnow() - g.request_start_time).total_seconds()
            app.logger.info(
                f"[{g.request_id}] Ответ: {response.status_code} Время: {duration:.3f}s"
            )

        return response

    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Очистка сессии БД"""
        db.session.remove()


if __name__ == "__main__":
    application = create_app()
    print("=" * 80)
    print(" " * 25 + f"🚀 {application.config['APP_NAME']} API Server")
    print("=" * 80)
    print(f'🌐 Окружение: {os.environ.get("FLASK_ENV", "development")}')
    print(f"💚 Здоровье: http://{application.config['HOST']}:{application.config['PORT']}/health")
    print("=" * 80)

    application.run(
        host=application.config["HOST"],
        port=application.config["PORT"],
        debug=application.debug,
    )
