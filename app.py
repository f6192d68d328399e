"""
DecorRental - Decoration Rental Reservations
Flask application factory and initialization
"""

import os
import click
import logging
from flask import Flask, g, redirect, url_for
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import configuration
from config import config

# Import extensions
from extensions import login_manager, csrf

# Import database functions
from database import close_db, init_db

from utils.api_response import api_error
from utils.messages import MESSAGES


def create_app(config_name=None):
    """
    Application factory for Flask app.

    Args:
        config_name: Configuration name ('development', 'production', 'test')

    Returns:
        Flask application instance
    """
    # Determine config
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config[config_name])

    # Initialize extensions
    initialize_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Register teardown handlers
    register_teardown_handlers(app)

    # Configure logging
    configure_logging(app)

    return app


def initialize_extensions(app):
    """Initialize Flask extensions."""
    # Initialize Flask-Login
    login_manager.init_app(app)
    # Initialize CSRF Protection
    csrf.init_app(app)


def register_blueprints(app):
    """Register Flask blueprints."""
    # Import blueprints
    from blueprints.auth.routes import auth_bp
    from blueprints.admin.routes import admin_bp
    from blueprints.reserve import reserve_bp
    from blueprints.cart.routes import cart_bp
    from blueprints.api.routes import api_bp

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(reserve_bp, url_prefix='/reserve')
    app.register_blueprint(cart_bp, url_prefix='/cart')
    app.register_blueprint(api_bp, url_prefix='/api')

    # Set default route
    @app.route('/')
    def index():
        """Send visitors to the reservation wizard."""
        return redirect(url_for('reserve.get_state'))


def register_error_handlers(app):
    """Register error handlers."""

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors."""
        return api_error(MESSAGES['not_found'], status=404, code='not_found')

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        # Rollback database on error
        db = g.get('db')
        if db:
            db.rollback()
        return api_error(MESSAGES['server_error'], status=500, code='server_error')

    @app.errorhandler(403)
    def forbidden_error(error):
        """Handle 403 errors."""
        return api_error(MESSAGES['permission_denied'], status=403, code='permission_denied')


def register_cli_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db_command():
        """Initialize database with schema and seed data."""
        click.echo('Initializing database...')
        with app.app_context():
            init_db()
        click.echo('Database initialized successfully!')

    @app.cli.command('create-user')
    @click.argument('username')
    @click.argument('email')
    @click.option('--role', type=click.Choice(['admin', 'customer']), default='customer')
    @click.option('--full-name', default=None)
    @click.option('--phone', default=None)
    @click.password_option()
    def create_user_command(username, email, role, full_name, phone, password):
        """Create a new user."""
        from models.user import create_user

        with app.app_context():
            try:
                user_id = create_user(
                    username=username,
                    email=email,
                    password=password,
                    full_name=full_name,
                    phone=phone,
                    role=role
                )
                click.echo(f'User created successfully! ID: {user_id}')
            except Exception as e:
                click.echo(f'Error creating user: {str(e)}', err=True)

    @app.cli.command('import-postcodes')
    @click.argument('csv_path', type=click.Path(exists=True, dir_okay=False))
    def import_postcodes_command(csv_path):
        """Load the postcode directory from a CSV file."""
        from models.postcode import import_postcodes_csv

        with app.app_context():
            count = import_postcodes_csv(csv_path)
        click.echo(f'Imported {count} postcodes')


def register_teardown_handlers(app):
    """Register teardown handlers."""

    @app.teardown_appcontext
    def teardown_db(error):
        """Close database connection at end of request."""
        close_db(error)


def configure_logging(app):
    """Configure application logging."""
    if not app.debug and not app.testing:
        # Production logging
        if not os.path.exists('logs'):
            os.mkdir('logs')

        file_handler = logging.FileHandler('logs/decorrental.log')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        # Service modules log through their own module loggers
        logging.getLogger('blueprints').addHandler(file_handler)
        logging.getLogger('models').addHandler(file_handler)
        logging.getLogger('blueprints').setLevel(logging.INFO)
        logging.getLogger('models').setLevel(logging.INFO)

        app.logger.setLevel(logging.INFO)
        app.logger.info('DecorRental startup')
    else:
        # Development logging
        app.logger.setLevel(logging.DEBUG)


# Create application instance for development server
if __name__ == '__main__':
    app = create_app()
    # host='0.0.0.0' allows access from other devices on the network
    app.run(host='0.0.0.0', debug=True)
