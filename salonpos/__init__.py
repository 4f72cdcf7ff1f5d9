"""Flask application factory."""
from flask import Flask, request, jsonify
from flask_wtf.csrf import CSRFProtect
from werkzeug.exceptions import HTTPException
from salonpos.database import init_db
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Initialize CSRF protection
    CSRFProtect(app)

    from flask_wtf.csrf import CSRFError, generate_csrf

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({'status': 'error', 'message': 'Session expired. Reload the page.'}), 400

    @app.route('/csrf-token', methods=['GET'])
    def csrf_token():
        """Token for the X-CSRFToken header of every POST/PUT/DELETE."""
        return jsonify({'csrf_token': generate_csrf(), 'header': 'X-CSRFToken'})

    # Error tracking in production
    if os.getenv('SENTRY_DSN') and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Redis cache (reports)
    from salonpos.services.cache_service import init_cache
    init_cache(app)

    # Prometheus metrics instrumentation
    from salonpos.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: trust X-Forwarded-* from the reverse proxy
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Initialize database
    init_db(app)

    # Error Handlers
    from salonpos.exceptions import SalonError

    @app.errorhandler(SalonError)
    def handle_salon_error(error):
        """Render application exceptions as JSON with their status code."""
        if error.status_code >= 500:
            app.logger.error(f"SalonError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"SalonError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        if isinstance(error, HTTPException):
            return jsonify({'status': 'error', 'message': error.description}), error.code
        app.logger.error(f"Unhandled Exception on {request.path}: {error}", exc_info=True)
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from salonpos.blueprints.customers import customers_bp
    from salonpos.blueprints.staff import staff_bp
    from salonpos.blueprints.services import services_bp
    from salonpos.blueprints.pos import pos_bp
    from salonpos.blueprints.sales import sales_bp
    from salonpos.blueprints.reports import reports_bp
    from salonpos.blueprints.metrics import metrics_bp

    app.register_blueprint(customers_bp)
    app.register_blueprint(staff_bp)
    app.register_blueprint(services_bp)
    app.register_blueprint(pos_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(metrics_bp)

    # CLI commands
    from salonpos.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(f"Salon POS started for {app.config.get('BUSINESS_NAME')}")

    return app
