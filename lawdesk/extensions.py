from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_wtf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()

# Key: client IP. Storage is configured in create_app() via limiter.init_app(...);
# memory:// and redis:// both expire each window, so idle keys do not accumulate.
limiter = Limiter(key_func=get_remote_address)
