from sqlalchemy import func, select

from extensions import db
from models.journal import JournalEntry, Tag
from models.user import User


class JournalStore:
    """Persistence for entries, users and tags on top of the Flask-SQLAlchemy session.

    Nothing here commits on its own; callers decide the unit of work.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    # Entries

    def save(self, entry: JournalEntry) -> JournalEntry:
        self.session.add(entry)
        self.session.flush()
        return entry

    def find_by_id(self, entry_id):
        entry = self.session.get(JournalEntry, str(entry_id))
        if entry is None or entry.is_deleted:
            return None
        return entry

    def count(self) -> int:
        # Soft-deleted rows still count as created
        return self.session.scalar(select(func.count()).select_from(JournalEntry))

    def find_all(self, page: int, size: int):
        query = (
            select(JournalEntry)
            .where(JournalEntry.deleted_at.is_(None))
            .order_by(JournalEntry.created_at.desc())
        )
        return db.paginate(query, page=page, per_page=size, error_out=False)

    # Users

    def find_earliest_user(self):
        return self.session.scalars(
            select(User).order_by(User.created_at.asc()).limit(1)
        ).first()

    def save_user(self, user: User) -> User:
        self.session.add(user)
        self.session.flush()
        return user

    # Tags

    def find_tag_by_name(self, name: str):
        return self.session.scalars(select(Tag).filter_by(name=name)).first()

    def save_tag(self, tag: Tag) -> Tag:
        self.session.add(tag)
        self.session.flush()
        return tag

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()
