"""
SQLAlchemy ORM models for the tables backing ``SQLAlchemyKeyValueStore``.

Each collection type of the key-value contract gets its own table so that
conditional writes and increments can be expressed as single UPDATE
statements.
"""

from sqlalchemy import BigInteger, Column, Float, Index, PrimaryKeyConstraint, Text

from .base import Base


class KVEntryORM(Base):
    """
    Plain string values (``get``/``set``/``delete``).

    Attributes:
        key (str): Store key, e.g. ``design:{designId}``.
        value (str): Opaque serialized value.
    """
    __tablename__ = "kv_entries"

    key = Column(Text, primary_key=True, comment="Store key.")
    value = Column(Text, nullable=False, comment="Opaque serialized value.")

    def __repr__(self) -> str:
        return f"<KVEntryORM(key='{self.key}')>"


class KVSetMemberORM(Base):
    """Members of unordered sets such as ``user:{userId}:designs``."""
    __tablename__ = "kv_set_members"

    key = Column(Text, nullable=False, comment="Set key.")
    member = Column(Text, nullable=False, comment="Set member.")

    __table_args__ = (
        PrimaryKeyConstraint("key", "member", name="pk_kv_set_member"),
    )

    def __repr__(self) -> str:
        return f"<KVSetMemberORM(key='{self.key}', member='{self.member}')>"


class KVSortedMemberORM(Base):
    """Members of scored sets such as ``leaderboard:{themeId}``."""
    __tablename__ = "kv_sorted_members"

    key = Column(Text, nullable=False, comment="Sorted set key.")
    member = Column(Text, nullable=False, comment="Sorted set member.")
    score = Column(Float, nullable=False, default=0.0, comment="Member score.")

    __table_args__ = (
        PrimaryKeyConstraint("key", "member", name="pk_kv_sorted_member"),
        Index("idx_kv_sorted_key_score", "key", "score"),
    )

    def __repr__(self) -> str:
        return f"<KVSortedMemberORM(key='{self.key}', member='{self.member}', score={self.score})>"


class KVCounterORM(Base):
    """Atomic integer counters such as ``design:{designId}:votes``."""
    __tablename__ = "kv_counters"

    key = Column(Text, primary_key=True, comment="Counter key.")
    value = Column(BigInteger, nullable=False, default=0, comment="Counter value.")

    def __repr__(self) -> str:
        return f"<KVCounterORM(key='{self.key}', value={self.value})>"
