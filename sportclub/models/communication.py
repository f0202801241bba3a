from sqlalchemy import text, Index, Boolean
from sportclub.extensions import db
from datetime import datetime, timezone


class Message(db.Model):
    """Direct message to one user, or broadcast to a category or a team"""
    __tablename__ = 'message'

    id = db.Column(db.Integer, primary_key=True)
    content = db.Column(db.Text, nullable=False)
    sender_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    receiver_id = db.Column(db.Integer, db.ForeignKey('user.id'))
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'))
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'))
    is_read = db.Column(Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False,
                           default=lambda: datetime.now(timezone.utc))

    # Relationships
    sender = db.relationship('User', foreign_keys=[sender_id],
                             backref=db.backref('sent_messages', lazy='dynamic'))
    receiver = db.relationship('User', foreign_keys=[receiver_id],
                               backref=db.backref('received_messages', lazy='dynamic'))
    category = db.relationship('Category', backref=db.backref('messages', lazy='dynamic'))
    team = db.relationship('Team', backref=db.backref('messages', lazy='dynamic'))

    __table_args__ = (
        Index('idx_message_receiver_read', receiver_id, is_read),
        Index('idx_message_sender', sender_id),
        Index('idx_message_category', category_id),
        Index('idx_message_team', team_id),
    )

    @property
    def is_broadcast(self):
        return self.receiver_id is None

    def to_dict(self):
        result = {
            'id': self.id,
            'content': self.content,
            'senderId': self.sender_id,
            'receiverId': self.receiver_id,
            'categoryId': self.category_id,
            'teamId': self.team_id,
            'isRead': self.is_read,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'sender': self.sender.to_summary() if self.sender else None,
        }
        if self.receiver:
            result['receiver'] = self.receiver.to_summary()
        if self.category:
            result['category'] = {'id': self.category.id, 'name': self.category.name}
        if self.team:
            result['team'] = {'id': self.team.id, 'name': self.team.name, 'categoryId': self.team.category_id}
        return result


class ClubAnnouncement(db.Model):
    __tablename__ = 'club_announcement'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    club_id = db.Column(db.Integer, db.ForeignKey('club.id'), nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False,
                           default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), onupdate=text('CURRENT_TIMESTAMP'))

    club = db.relationship('Club', backref=db.backref('announcements', lazy='dynamic'))
    author = db.relationship('User', backref=db.backref('announcements', lazy='dynamic'))

    __table_args__ = (
        Index('idx_announcement_club_created', club_id, created_at),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'clubId': self.club_id,
            'authorId': self.author_id,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'author': {'id': self.author.id, 'name': self.author.name} if self.author else None,
        }
