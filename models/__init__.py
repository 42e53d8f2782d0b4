# Import all models to ensure they are registered with SQLAlchemy
from .user import User
from .journal import JournalEntry, Tag, entry_tags

# Make models available at package level
__all__ = ['User', 'JournalEntry', 'Tag', 'entry_tags']
