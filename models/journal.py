import uuid
from datetime import datetime
from extensions import db

entry_tags = db.Table(
    'entry_tags',
    db.Column('entry_id', db.String(36), db.ForeignKey('journal_entries.id'), primary_key=True),
    db.Column('tag_id', db.Integer, db.ForeignKey('tags.id'), primary_key=True),
)


class JournalEntry(db.Model):
    __tablename__ = 'journal_entries'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    sentiment_label = db.Column(db.String(50))
    positive_score = db.Column(db.Float)
    negative_score = db.Column(db.Float)
    neutral_score = db.Column(db.Float)
    deleted_at = db.Column(db.DateTime)

    # Foreign Keys
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)

    # Relationships
    tags = db.relationship('Tag', secondary=entry_tags, backref=db.backref('entries', lazy='dynamic'))

    def __init__(self, content, user_id, sentiment_label='neutral',
                 positive_score=None, negative_score=None, neutral_score=None):
        self.content = content
        self.user_id = user_id
        self.sentiment_label = sentiment_label
        self.positive_score = positive_score
        self.negative_score = negative_score
        self.neutral_score = neutral_score

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    def to_dict(self):
        return {
            'id': self.id,
            'content': self.content,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'userId': self.user_id,
            'sentimentLabel': self.sentiment_label,
            'positiveScore': self.positive_score,
            'negativeScore': self.negative_score,
            'neutralScore': self.neutral_score,
            'deletedAt': self.deleted_at.isoformat() if self.deleted_at else None,
            'tags': sorted((tag.to_dict() for tag in self.tags), key=lambda t: t['name']),
        }

    def __repr__(self):
        return f'<JournalEntry {self.id}>'


class Tag(db.Model):
    __tablename__ = 'tags'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'))

    def __init__(self, name, user_id=None):
        self.name = name
        self.user_id = user_id

    def to_dict(self):
        return {'id': self.id, 'name': self.name}

    def __repr__(self):
        return f'<Tag {self.name}>'
