"""
extensions.py - Flask Extensions
Extensions are created here and bound to the app in app.py with init_app().
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_bcrypt import Bcrypt

# Database ORM - holds the key-value table behind the record store
db = SQLAlchemy()

# Schema migrations (flask db init / migrate / upgrade)
migrate = Migrate()

# Session handling for staff and student logins
login_manager = LoginManager()

# Password hashing for staff accounts
bcrypt = Bcrypt()
