from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_caching import Cache
from flask_wtf import CSRFProtect
from ai_services.sentiment_analyzer import SentimentGateway

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
cache = Cache()
csrf = CSRFProtect()
sentiment_gateway = SentimentGateway()
