from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate

"""
Flask Extensions - Initialized here, configured in payhub/__init__.py

Kept in their own module so models, services and blueprints can import
them without importing the app factory (avoids circular imports).
"""

# Database ORM
# Usage: from payhub.extensions import db
db = SQLAlchemy()

# JWT Authentication - bearer tokens for every private route
# Usage: from payhub.extensions import jwt
jwt = JWTManager()

# Alembic migrations (flask db upgrade)
migrate = Migrate()
