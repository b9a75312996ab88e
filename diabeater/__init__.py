from flask import Flask, jsonify
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
from dotenv import load_dotenv
import os
import logging

load_dotenv()

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()

def create_app(test_config=None):
    # Validate required environment variables
    if test_config is None:
        required_vars = ['DATABASE_URL', 'SECRET_KEY', 'ADMIN_EMAIL']
        for var in required_vars:
            if not os.getenv(var):
                raise ValueError(f"Required environment variable {var} is not set")

    app = Flask(__name__)
    app.config.from_object('config')
    if test_config:
        app.config.update(test_config)

    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    login_manager.init_app(app)

    # JSON clients get a 401 instead of a redirect to a login page
    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Please log in to continue."}), 401

    # Wire the managed-backend adapters (documents, blobs, identity)
    from diabeater.store import init_backend
    init_backend(app)

    # Register blueprints
    from diabeater.core.auth import auth_bp
    from diabeater.core.admin import admin_bp
    from diabeater.core.nutritionist import nutritionist_bp
    from diabeater.core.files import files_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(nutritionist_bp, url_prefix='/nutritionist')
    app.register_blueprint(files_bp, url_prefix='/files')

    from diabeater.commands import diabeater_cli
    app.cli.add_command(diabeater_cli)

    # Import models to ensure they're known to Flask-SQLAlchemy
    from diabeater.models import User, LogEntry, StoredDocument

    # User loader for Flask-Login
    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, user_id)

    return app
