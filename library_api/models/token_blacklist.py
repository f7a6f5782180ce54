"""
Revoked JWT tokens, checked on every authenticated request.
"""
from datetime import datetime, timezone

from library_api import db
from library_api.models.base import BaseModel, utcnow


class TokenBlacklist(BaseModel):
    """
    A token revoked through logout.
    """
    __tablename__ = 'token_blacklist'

    jti = db.Column(db.String(36), nullable=False, index=True, unique=True)
    token_type = db.Column(db.String(10), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('system_users.id', ondelete='CASCADE'), nullable=False)
    revoked_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)

    user = db.relationship('User', backref=db.backref('revoked_tokens', lazy='dynamic', passive_deletes=True))

    def __repr__(self):
        return f'<TokenBlacklist {self.jti}>'

    @classmethod
    def is_token_revoked(cls, jti):
        """
        Check if the given token has been revoked.

        Args:
            jti: The token identifier.

        Returns:
            bool: True if the token is revoked, False otherwise.
        """
        return db.session.query(cls.id).filter_by(jti=jti).first() is not None

    @classmethod
    def revoke(cls, decoded_token):
        """
        Revoke a decoded JWT.

        Args:
            decoded_token (dict): Claims of the token being revoked.

        Returns:
            TokenBlacklist: The stored revocation entry.
        """
        expires_at = datetime.fromtimestamp(decoded_token['exp'], tz=timezone.utc).replace(tzinfo=None)
        entry = cls(
            jti=decoded_token['jti'],
            token_type=decoded_token.get('type', 'access'),
            user_id=int(decoded_token['sub']),
            expires_at=expires_at,
        )
        db.session.add(entry)
        db.session.commit()
        return entry
