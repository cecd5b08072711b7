"""Shared Flask extension singletons to avoid circular imports."""
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_wtf import CSRFProtect

# Initialize extensions without app; app_factory will bind them.
csrf = CSRFProtect()
db = SQLAlchemy()
migrate = Migrate()
